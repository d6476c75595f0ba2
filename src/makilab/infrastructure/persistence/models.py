"""SQLModel table definitions."""

from datetime import datetime, timezone

from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MessageModel(SQLModel, table=True):
    """Conversation history, one row per message."""

    __tablename__ = "messages"

    id: int | None = Field(default=None, primary_key=True)
    channel: str = Field(index=True)
    role: str  # "user" | "assistant"
    content: str
    created_at: datetime = Field(default_factory=_utcnow)


class SummaryModel(SQLModel, table=True):
    """Rolling compaction summaries."""

    __tablename__ = "summaries"

    id: int | None = Field(default=None, primary_key=True)
    channel: str = Field(index=True)
    content: str
    covers_up_to_id: int
    created_at: datetime = Field(default_factory=_utcnow)


class FactModel(SQLModel, table=True):
    """Durable facts, one row per key."""

    __tablename__ = "facts"

    key: str = Field(primary_key=True)
    value: str
    updated_at: datetime = Field(default_factory=_utcnow)


class SemanticEntryModel(SQLModel, table=True):
    """Embedded texts for semantic recall."""

    __tablename__ = "semantic_entries"

    id: str = Field(primary_key=True)
    kind: str = Field(index=True)  # "conversation" | "fact" | "summary"
    channel: str | None = Field(default=None, index=True)
    key: str | None = None
    content: str
    vector: str  # JSON array of floats
    updated_at: datetime = Field(default_factory=_utcnow)


class WorkflowRunModel(SQLModel, table=True):
    """Scheduled workflow runs."""

    __tablename__ = "workflow_runs"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    status: str
    summary: str = ""
    steps: str = "[]"  # JSON list of step outcomes
    started_at: datetime
    finished_at: datetime
