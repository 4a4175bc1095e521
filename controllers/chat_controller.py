"""Controller for follow-up questions about the uploaded image."""

import asyncio
import logging
from typing import Any, Dict

from fastapi import HTTPException, Request

from controllers.session_controller import get_openai_client, get_session_store
from models.flow_models import AnswerQuestionInput
from models.session_models import ChatMessage
from services.openai.question_answerer import QuestionAnswerer
from services.session_store import SessionStore

CHAT_FALLBACK_ANSWER = "Sorry, I could not answer that question."
CHAT_ERROR_TITLE = "Chat Error"
CHAT_ERROR_DESCRIPTION = "There was an issue communicating with the AI."


async def ask_question(request: Request, session_id: str, question: str) -> Dict[str, Any]:
    """Answer a question about the session's original image.

    Blank questions and sessions without an uploaded image are left untouched
    and no model call is made.

    Raises:
        HTTPException(404) if the session does not exist.
        HTTPException(409) if another question is still pending.
    """
    store = get_session_store(request)
    try:
        state = store.get(session_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    text = (question or "").strip()
    if not text or not state.original_image:
        return store.snapshot(session_id)
    if state.loading.chat:
        raise HTTPException(status_code=409, detail="A question is already being answered.")

    answerer = QuestionAnswerer(get_openai_client(request))
    photo_data_uri = state.original_image
    generation, placeholder = store.begin_question(session_id, text)
    await resolve_question(store, session_id, generation, placeholder, photo_data_uri, text, answerer)

    try:
        return store.snapshot(session_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


async def resolve_question(
    store: SessionStore,
    session_id: str,
    generation: int,
    placeholder: ChatMessage,
    photo_data_uri: str,
    question: str,
    answerer: QuestionAnswerer,
) -> bool:
    """Call the model and swap the pending placeholder for the answer or the fallback.

    Returns False when the session was reset or deleted meanwhile and the
    answer was discarded.
    """
    try:
        result = await answerer.answer(AnswerQuestionInput(photoDataUri=photo_data_uri, question=question))
        answer = result.answer
    except asyncio.CancelledError:
        store.resolve_question(session_id, generation, placeholder, CHAT_FALLBACK_ANSWER)
        raise
    except Exception as exc:  # pylint: disable=broad-exception-caught
        logging.error("Chat error for session %s: %s", session_id, exc)
        answer = CHAT_FALLBACK_ANSWER
        if store.is_current(session_id, generation):
            store.add_notice(session_id, CHAT_ERROR_TITLE, CHAT_ERROR_DESCRIPTION)
    return store.resolve_question(session_id, generation, placeholder, answer)
