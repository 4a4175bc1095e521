"""Answer free-text questions about an ultrasound image."""

from openai import AsyncOpenAI

from models.flow_models import AnswerQuestionInput, AnswerQuestionOutput
from services.openai.media_inputs import build_inputs
from services.openai.prompts import question_system_prompt, question_user_prompt
from services.openai.schemas import ANSWER_FUNCTION, ANSWER_FUNCTION_NAME
from services.openai.tool_call import ToolCallService


class QuestionAnswerer:
    """Visual question answering over the uploaded image."""

    def __init__(self, client: AsyncOpenAI, model: str | None = None) -> None:
        self.service = ToolCallService(client, model)

    async def answer(self, payload: AnswerQuestionInput) -> AnswerQuestionOutput:
        if not payload.question.strip():
            raise ValueError("Question text is required.")
        inputs = build_inputs(
            question_system_prompt(),
            question_user_prompt(payload.question.strip()),
            image_urls=[payload.photoDataUri],
        )
        args = await self.service.call_tool(inputs, tool=ANSWER_FUNCTION, tool_name=ANSWER_FUNCTION_NAME)

        answer = args.get("answer")
        if not isinstance(answer, str) or not answer.strip():
            raise ValueError("Model returned an empty answer.")
        return AnswerQuestionOutput(answer=answer.strip())
