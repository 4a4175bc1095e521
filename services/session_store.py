"""Simple in-memory store for view sessions."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

from models.session_models import ChatMessage, LoadingFlags, Notice, SessionState

LOGGER = logging.getLogger(__name__)
MAX_NOTICES = 20


class SessionStore:
	"""Manage view sessions and the analysis tasks writing into them.

	Every reset bumps the session generation. Writers capture the generation
	they started under and pass it back; writes from an older generation are
	dropped so a cleared session is never repopulated by a stale response.
	"""

	def __init__(self) -> None:
		self._sessions: Dict[str, SessionState] = {}
		self._tasks: Dict[str, asyncio.Task] = {}

	def create(self) -> SessionState:
		"""Create an empty session."""
		session_id = uuid4().hex
		state = SessionState(session_id=session_id)
		self._sessions[session_id] = state
		return state

	def get(self, session_id: str) -> SessionState:
		"""Return a session or raise KeyError if missing."""
		state = self._sessions.get(session_id)
		if state is None:
			raise KeyError(f"Session {session_id} not found")
		return state

	def delete(self, session_id: str) -> None:
		"""Discard a session, cancelling its in-flight analysis."""
		state = self.get(session_id)
		state.generation += 1
		self._cancel_task(session_id)
		del self._sessions[session_id]

	def reset(self, session_id: str) -> SessionState:
		"""Clear all view fields and invalidate outstanding work.

		Notices survive a reset so a failure toast raised right before it is
		still delivered.
		"""
		state = self.get(session_id)
		state.generation += 1
		self._cancel_task(session_id)
		state.original_image = None
		state.annotated_image = None
		state.anomalies = []
		state.report = ""
		state.chat_history = []
		state.loading = LoadingFlags()
		return state

	def is_current(self, session_id: str, generation: int) -> bool:
		"""Return True when the session still exists at the given generation."""
		state = self._sessions.get(session_id)
		return state is not None and state.generation == generation

	def update(self, session_id: str, generation: int, /, **fields: Any) -> bool:
		"""Set view fields if the generation is still current."""
		if not self.is_current(session_id, generation):
			LOGGER.info("Dropping stale update for session %s (generation %s)", session_id, generation)
			return False
		state = self._sessions[session_id]
		for name, value in fields.items():
			if name in ("session_id", "generation", "loading", "notices") or not hasattr(state, name):
				raise AttributeError(f"Cannot update session field '{name}'")
			setattr(state, name, value)
		return True

	def set_loading(self, session_id: str, generation: int, /, **flags: bool) -> bool:
		"""Toggle loading flags if the generation is still current."""
		if not self.is_current(session_id, generation):
			return False
		loading = self._sessions[session_id].loading
		for name, value in flags.items():
			if not hasattr(loading, name):
				raise AttributeError(f"Unknown loading flag '{name}'")
			setattr(loading, name, bool(value))
		return True

	def add_notice(self, session_id: str, title: str, description: str, variant: str = "destructive") -> Optional[Notice]:
		"""Queue a toast for the page; returns None when the session is gone."""
		state = self._sessions.get(session_id)
		if state is None:
			return None
		notice = Notice(title=title, description=description, variant=variant)
		state.notices.append(notice)
		del state.notices[:-MAX_NOTICES]
		return notice

	def begin_question(self, session_id: str, question: str) -> Tuple[int, ChatMessage]:
		"""Append the user question and a pending placeholder to the transcript."""
		state = self.get(session_id)
		placeholder = ChatMessage(role="loading")
		state.chat_history = [*state.chat_history, ChatMessage(role="user", content=question), placeholder]
		state.loading.chat = True
		return state.generation, placeholder

	def resolve_question(self, session_id: str, generation: int, placeholder: ChatMessage, answer: str) -> bool:
		"""Replace the pending placeholder with the resolved answer."""
		if not self.is_current(session_id, generation):
			return False
		state = self._sessions[session_id]
		history: List[ChatMessage] = []
		for message in state.chat_history:
			history.append(ChatMessage(role="ai", content=answer) if message is placeholder else message)
		state.chat_history = history
		state.loading.chat = False
		return True

	def track(self, session_id: str, task: asyncio.Task) -> None:
		"""Remember the analysis task so a reset can cancel it."""
		self._cancel_task(session_id)
		self._tasks[session_id] = task
		task.add_done_callback(lambda finished: self._forget_task(session_id, finished))

	def snapshot(self, session_id: str) -> Dict[str, Any]:
		"""Return a JSON-friendly view of the session."""
		return asdict(self.get(session_id))

	async def aclose(self) -> None:
		"""Cancel all outstanding analysis tasks."""
		tasks = list(self._tasks.values())
		for task in tasks:
			task.cancel()
		if tasks:
			await asyncio.gather(*tasks, return_exceptions=True)
		self._tasks.clear()

	def _cancel_task(self, session_id: str) -> None:
		task = self._tasks.pop(session_id, None)
		if task is None or task.done():
			return
		try:
			current = asyncio.current_task()
		except RuntimeError:
			current = None
		# A pipeline resetting its own session after a failure must not cancel itself.
		if task is not current:
			task.cancel()

	def _forget_task(self, session_id: str, task: asyncio.Task) -> None:
		if self._tasks.get(session_id) is task:
			del self._tasks[session_id]
