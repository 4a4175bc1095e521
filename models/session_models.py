"""View session models for the upload, analysis and chat workflow."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import List, Optional
from uuid import uuid4

CHAT_ROLES = ("user", "ai", "loading")


@dataclass
class ChatMessage:
	"""One entry of the chat transcript; `loading` marks the pending placeholder."""

	role: str
	content: str = ""

	def __post_init__(self) -> None:
		if self.role not in CHAT_ROLES:
			raise ValueError(f"Unsupported chat role '{self.role}'")


@dataclass
class LoadingFlags:
	"""Independent loading indicators, one per remote stage."""

	detection: bool = False
	report: bool = False
	chat: bool = False


@dataclass
class Notice:
	"""User-facing notification shown as a toast by the page."""

	title: str
	description: str
	variant: str = "destructive"
	id: str = field(default_factory=lambda: uuid4().hex)
	created_at: float = field(default_factory=lambda: time.time())


@dataclass
class SessionState:
	"""Transient view state for one browser visit."""

	session_id: str
	generation: int = 0
	original_image: Optional[str] = None
	annotated_image: Optional[str] = None
	anomalies: List[str] = field(default_factory=list)
	report: str = ""
	chat_history: List[ChatMessage] = field(default_factory=list)
	loading: LoadingFlags = field(default_factory=LoadingFlags)
	notices: List[Notice] = field(default_factory=list)
	created_at: float = field(default_factory=lambda: time.time())
