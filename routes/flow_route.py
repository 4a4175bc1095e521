"""FastAPI routes exposing the hosted-model operations directly."""

from fastapi import APIRouter, HTTPException, Request

from controllers.flow_controller import answer_question, detect_anomalies, generate_report
from models.flow_models import AnswerQuestionInput, DetectAnomaliesInput, GenerateReportInput

router = APIRouter(prefix="/api/flows", tags=["flows"])


@router.post("/detect-anomalies", summary="Detect anomalies in an ultrasound image")
async def detect_anomalies_route(request: Request, payload: DetectAnomaliesInput):
    try:
        return await detect_anomalies(request, payload)
    except HTTPException:
        raise
    except Exception as exc:  # pylint: disable=broad-exception-caught
        raise HTTPException(status_code=500, detail="Failed to analyze the image.") from exc


@router.post("/answer-question", summary="Answer a question about an ultrasound image")
async def answer_question_route(request: Request, payload: AnswerQuestionInput):
    try:
        return await answer_question(request, payload)
    except HTTPException:
        raise
    except Exception as exc:  # pylint: disable=broad-exception-caught
        raise HTTPException(status_code=500, detail="Failed to answer the question.") from exc


@router.post("/generate-report", summary="Draft a preliminary ultrasound report")
async def generate_report_route(request: Request, payload: GenerateReportInput):
    try:
        return await generate_report(request, payload)
    except HTTPException:
        raise
    except Exception as exc:  # pylint: disable=broad-exception-caught
        raise HTTPException(status_code=500, detail="Failed to generate the report.") from exc
