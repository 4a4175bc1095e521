"""FastAPI routes for view sessions: upload, analysis state, report and chat."""

from fastapi import APIRouter, File, HTTPException, Request, UploadFile
from pydantic import BaseModel

from controllers.analysis_controller import upload_image
from controllers.chat_controller import ask_question
from controllers.session_controller import (
	delete_session,
	get_session,
	reset_session,
	start_session,
	update_report,
)

router = APIRouter(prefix="/sessions", tags=["sessions"])


class ReportPayload(BaseModel):
	report: str


class QuestionPayload(BaseModel):
	question: str = ""


@router.post("")
async def start_session_route(request: Request):
	try:
		return await start_session(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/{session_id}")
async def get_session_route(request: Request, session_id: str):
	try:
		return await get_session(request, session_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{session_id}/upload")
async def upload_route(request: Request, session_id: str, file: UploadFile = File(...)):
	"""Replace the session image and start anomaly detection and report drafting."""
	try:
		return await upload_image(request, session_id, file)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{session_id}/reset")
async def reset_route(request: Request, session_id: str):
	try:
		return await reset_session(request, session_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.put("/{session_id}/report")
async def update_report_route(request: Request, session_id: str, payload: ReportPayload):
	try:
		return await update_report(request, session_id, payload.report)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{session_id}/chat")
async def chat_route(request: Request, session_id: str, payload: QuestionPayload):
	"""Ask a question about the uploaded image and return the updated transcript."""
	try:
		return await ask_question(request, session_id, payload.question)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.delete("/{session_id}")
async def delete_session_route(request: Request, session_id: str):
	try:
		return await delete_session(request, session_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
