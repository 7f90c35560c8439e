from __future__ import annotations

from typing import Protocol

import typer

from gitpublish.events.types import (
    Event,
    PublishCompleted,
    PublishDryRun,
    PublishFailed,
    PublishStarted,
    StepStarted,
    TagCreated,
    TagPushed,
)


class EventObserver(Protocol):
    def on_event(self, event: Event) -> None: ...


class StdoutObserver:
    def on_event(self, event: Event) -> None:
        if isinstance(event, PublishStarted):
            mode = " (dry run)" if event.dry_run else ""
            typer.echo(f"[Publish] {event.package_name} {event.version}{mode}: tags {', '.join(event.tags)}")
        elif isinstance(event, StepStarted):
            detail = f" {event.detail}" if event.detail else ""
            typer.echo(f"  [Step] {event.step}{detail}")
        elif isinstance(event, TagCreated):
            typer.echo(f"  [Tag] Created {event.tag}")
        elif isinstance(event, TagPushed):
            typer.echo(f"  [Tag] Pushed {event.tag} to {event.remote}")
        elif isinstance(event, PublishDryRun):
            typer.echo(
                "Running in dry-run mode. The repository in the following temporary directory\n"
                "has been left ready to push to a public server.\n"
                f"{event.clone_path}"
            )
        elif isinstance(event, PublishCompleted):
            typer.echo(f"[Publish] Completed: {event.commit[:8]} ({event.duration_ms}ms)")
        elif isinstance(event, PublishFailed):
            typer.echo(f"[Publish] FAILED at {event.step}: {event.error}", err=True)


class RecordingObserver:
    """Keeps every event it sees, in order."""

    def __init__(self) -> None:
        self.events: list[Event] = []

    def on_event(self, event: Event) -> None:
        self.events.append(event)

    def of_type(self, event_type: str) -> list[Event]:
        return [e for e in self.events if e.event_type == event_type]
