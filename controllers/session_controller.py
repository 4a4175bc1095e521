"""Session lifecycle helpers for the analysis view."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import HTTPException, Request

from services.session_store import SessionStore


def get_session_store(request: Request) -> SessionStore:
	"""Return the shared session store from app state."""
	store = getattr(request.app.state, "session_store", None)
	if store is None:
		raise HTTPException(status_code=500, detail="Session store unavailable")
	return store


def get_openai_client(request: Request):
	"""Return the shared OpenAI client from app state."""
	client = getattr(request.app.state, "openai_client", None)
	if client is None:
		raise HTTPException(status_code=500, detail="OpenAI client not initialized.")
	return client


async def start_session(request: Request) -> Dict[str, Any]:
	"""Create a new view session and return its snapshot."""
	store = get_session_store(request)
	state = store.create()
	return store.snapshot(state.session_id)


async def get_session(request: Request, session_id: str) -> Dict[str, Any]:
	"""Return the current snapshot for a session."""
	store = get_session_store(request)
	try:
		return store.snapshot(session_id)
	except KeyError as exc:
		raise HTTPException(status_code=404, detail=str(exc)) from exc


async def reset_session(request: Request, session_id: str) -> Dict[str, Any]:
	"""Clear the view state and invalidate in-flight analysis."""
	store = get_session_store(request)
	try:
		store.reset(session_id)
	except KeyError as exc:
		raise HTTPException(status_code=404, detail=str(exc)) from exc
	return store.snapshot(session_id)


async def delete_session(request: Request, session_id: str) -> Dict[str, Any]:
	"""Discard a session when the visitor navigates away."""
	store = get_session_store(request)
	try:
		store.delete(session_id)
	except KeyError as exc:
		raise HTTPException(status_code=404, detail=str(exc)) from exc
	return {"session_id": session_id, "deleted": True}


async def update_report(request: Request, session_id: str, report: str) -> Dict[str, Any]:
	"""Store the user's edits to the preliminary report."""
	store = get_session_store(request)
	try:
		state = store.get(session_id)
	except KeyError as exc:
		raise HTTPException(status_code=404, detail=str(exc)) from exc
	if state.loading.report:
		raise HTTPException(status_code=409, detail="The report is still being generated.")
	store.update(session_id, state.generation, report=report)
	return store.snapshot(session_id)
