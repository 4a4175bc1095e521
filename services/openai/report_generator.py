"""Preliminary report drafting from an image pair and detected anomalies."""

from openai import AsyncOpenAI

from models.flow_models import GenerateReportInput, GenerateReportOutput
from services.openai.media_inputs import build_inputs
from services.openai.prompts import report_system_prompt, report_user_prompt
from services.openai.schemas import REPORT_FUNCTION, REPORT_FUNCTION_NAME
from services.openai.tool_call import ToolCallService


class ReportGenerator:
    """Create a preliminary report for an analysed ultrasound image."""

    def __init__(self, client: AsyncOpenAI, model: str | None = None) -> None:
        self.service = ToolCallService(client, model)

    async def generate(self, payload: GenerateReportInput) -> GenerateReportOutput:
        """Return the drafted report.

        Raises:
            ValueError: If the model returns no report text.
        """
        inputs = build_inputs(
            report_system_prompt(),
            report_user_prompt(payload.detectedAnomalies),
            image_urls=[payload.originalImageDataUri, payload.annotatedImageDataUri],
        )
        args = await self.service.call_tool(inputs, tool=REPORT_FUNCTION, tool_name=REPORT_FUNCTION_NAME)

        report = args.get("report")
        if not isinstance(report, str) or not report.strip():
            raise ValueError("Model returned an empty report.")
        return GenerateReportOutput(report=report.strip())
