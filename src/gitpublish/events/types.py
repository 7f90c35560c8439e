from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field


class Event(BaseModel):
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    event_type: str


class PublishStarted(Event):
    event_type: str = "PublishStarted"
    package_name: str
    version: str = ""
    tags: list[str] = Field(default_factory=list)
    dry_run: bool = False


class StepStarted(Event):
    event_type: str = "StepStarted"
    step: str
    detail: str = ""


class TagCreated(Event):
    event_type: str = "TagCreated"
    tag: str
    commit: str = ""


class TagPushed(Event):
    event_type: str = "TagPushed"
    tag: str
    remote: str = "origin"


class PublishDryRun(Event):
    event_type: str = "PublishDryRun"
    clone_path: str
    commit: str = ""


class PublishCompleted(Event):
    event_type: str = "PublishCompleted"
    commit: str
    install_references: list[str] = Field(default_factory=list)
    duration_ms: int = 0


class PublishFailed(Event):
    event_type: str = "PublishFailed"
    step: str
    error: str = ""


EVENT_TYPE_MAP: dict[str, type[Event]] = {
    "PublishStarted": PublishStarted,
    "StepStarted": StepStarted,
    "TagCreated": TagCreated,
    "TagPushed": TagPushed,
    "PublishDryRun": PublishDryRun,
    "PublishCompleted": PublishCompleted,
    "PublishFailed": PublishFailed,
}
