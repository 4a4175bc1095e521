"""Direct access to the three hosted-model operations."""

from typing import Any, Dict

from fastapi import HTTPException, Request

from controllers.session_controller import get_openai_client
from models.flow_models import AnswerQuestionInput, DetectAnomaliesInput, GenerateReportInput
from services.openai.anomaly_detector import AnomalyDetector
from services.openai.question_answerer import QuestionAnswerer
from services.openai.report_generator import ReportGenerator


async def detect_anomalies(request: Request, payload: DetectAnomaliesInput) -> Dict[str, Any]:
    """Return `{anomalies, annotatedImage}` for a data URI image."""
    detector = AnomalyDetector(get_openai_client(request))
    try:
        result = await detector.detect(payload)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return result.model_dump()


async def answer_question(request: Request, payload: AnswerQuestionInput) -> Dict[str, Any]:
    """Return `{answer}` for a question about a data URI image."""
    answerer = QuestionAnswerer(get_openai_client(request))
    try:
        result = await answerer.answer(payload)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return result.model_dump()


async def generate_report(request: Request, payload: GenerateReportInput) -> Dict[str, Any]:
    """Return `{report}` drafted from an image pair and anomaly list."""
    reporter = ReportGenerator(get_openai_client(request))
    try:
        result = await reporter.generate(payload)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return result.model_dump()
