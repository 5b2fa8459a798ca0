"""Pydantic models for the assistant domain and request/response schemas."""

import uuid
from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_DURATION = "Not specified"


class Origin(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class Category(str, Enum):
    """Presentation tag attached to every message."""

    GENERAL = "general"
    WARNING = "warning"
    SUCCESS = "success"
    INFO = "info"


class Severity(str, Enum):
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"


class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    origin: Origin
    category: Category
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class SymptomRecord(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    record_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    name: str
    severity: Severity = Severity.MODERATE
    duration: str = DEFAULT_DURATION


class GuidanceRule(BaseModel):
    """A canned response and the keywords that select it.

    A rule fires when the text contains any of ``trigger_keywords``, or,
    for compound rules, at least one term from every group in
    ``required_groups``.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    trigger_keywords: frozenset[str] = frozenset()
    required_groups: tuple[frozenset[str], ...] = ()
    message: str
    category: Category

    def fires(self, text: str) -> bool:
        if any(k in text for k in self.trigger_keywords):
            return True
        return bool(self.required_groups) and all(
            any(term in text for term in group) for group in self.required_groups
        )


class Guidance(BaseModel):
    """Outcome of a single matcher or analyzer evaluation."""

    model_config = ConfigDict(frozen=True)

    message: str
    category: Category
    rule: str


class SymptomCluster(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    substrings: frozenset[str]


class ChatRequest(BaseModel):
    session_id: str
    message: str


class ChatResponse(BaseModel):
    session_id: str
    answer: str
    category: Category
    created_at: datetime


class HistoryResponse(BaseModel):
    session_id: str
    pending: bool = False
    messages: list[Message] = []


class SymptomCreate(BaseModel):
    name: str
    severity: Severity = Severity.MODERATE
    duration: str | None = None


class SeverityUpdate(BaseModel):
    severity: Severity


class LedgerResponse(BaseModel):
    session_id: str
    symptoms: list[SymptomRecord] = []
