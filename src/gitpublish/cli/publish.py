from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer

from gitpublish.config.settings import ConfigError, GitpublishConfig, load_config
from gitpublish.engine.workflow import PublishError, PublishResult, PublishStatus, PublishWorkflow
from gitpublish.events.dispatcher import EventDispatcher
from gitpublish.events.observer import StdoutObserver
from gitpublish.git.branch import BranchParseError, InvalidBranchName
from gitpublish.git.repository import Repository, RepositoryError
from gitpublish.models.plan import PublishPlan
from gitpublish.package.source_package import PackageError, SourcePackage
from gitpublish.process import ProcessError
from gitpublish.validation.validator import ValidationError


async def _publish(
    source: Path,
    config: GitpublishConfig,
    tags: list[str],
    tag_version: bool,
    dry_run: bool,
    dispatcher: EventDispatcher,
) -> PublishResult:
    repo = await Repository.from_directory(source)
    package = SourcePackage.from_directory(source, exclude=config.package.exclude)
    plan = PublishPlan.build(repo, package, tags, tag_version=tag_version, dry_run=dry_run)
    return await PublishWorkflow(plan, config, event_emitter=dispatcher).run()


def publish(
    tag: Optional[list[str]] = typer.Option(
        None, "--tag", help="Apply the specified tag to the publish commit (can be used multiple times)"
    ),
    tag_version: bool = typer.Option(
        False, "--tag-version", help="Apply a tag with the project's version number (from pyproject.toml)"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Perform all operations but do not push to origin"),
    source: Path = typer.Option(Path("."), "--source", help="Directory of the package to publish"),
) -> None:
    """Publish a Python package to a tagged commit of its Git repository."""
    source = source.resolve()
    try:
        config = load_config(start=source)
    except ConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    dispatcher = EventDispatcher()
    dispatcher.add_observer(StdoutObserver())

    try:
        result = asyncio.run(
            _publish(source, config, tag or [], tag_version, dry_run, dispatcher)
        )
    except ValidationError as e:
        for d in e.diagnostics.errors:
            typer.echo(f"  ERROR: [{d.rule}] {d.message}", err=True)
            for path in d.paths:
                typer.echo(f"    {path}", err=True)
            if d.suggestion:
                typer.echo(f"    Suggestion: {d.suggestion}", err=True)
        raise typer.Exit(code=1)
    except (
        ProcessError,
        RepositoryError,
        PackageError,
        PublishError,
        InvalidBranchName,
        BranchParseError,
        OSError,
    ) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    if result.status == PublishStatus.DRY_RUN:
        return

    lines = [
        "Done.",
        "To include the published package in another project, install it with:",
    ]
    lines.extend(f'  pip install "{ref}"' for ref in result.install_references)
    typer.echo("\n".join(lines))
