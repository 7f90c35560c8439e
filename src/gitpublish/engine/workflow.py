from __future__ import annotations

import getpass
import logging
import time
from collections.abc import Callable
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from gitpublish import fs
from gitpublish.config.settings import GitpublishConfig
from gitpublish.engine.fanout import fan_out
from gitpublish.events.dispatcher import EventEmitter
from gitpublish.git.branch import BranchName
from gitpublish.git.repository import Repository
from gitpublish.models.plan import PublishPlan
from gitpublish.package.url import RepositoryUrl
from gitpublish.validation.validator import validate_or_raise

logger = logging.getLogger(__name__)


class PublishStep(str, Enum):
    VALIDATE = "validate"
    CLONE = "clone"
    CHECKOUT_REVISION = "checkout_revision"
    CREATE_TEMP_BRANCH = "create_temp_branch"
    PURGE = "purge"
    REPUBLISH = "republish"
    COMMIT = "commit"
    TAG = "tag"
    DRY_RUN_STOP = "dry_run_stop"
    PUSH = "push"
    DONE = "done"


class PublishStatus(str, Enum):
    PUBLISHED = "PUBLISHED"
    DRY_RUN = "DRY_RUN"


class PublishError(Exception):
    def __init__(self, step: PublishStep, message: str) -> None:
        self.step = step
        super().__init__(message)


class PublishResult(BaseModel):
    status: PublishStatus
    clone_path: Path
    commit: str
    tags: list[str] = Field(default_factory=list)
    install_references: list[str] = Field(default_factory=list)


class _NullEmitter:
    def emit(self, event_type: str, **data: Any) -> None:
        pass


def temp_branch_name(base_name: str, username: str, now: datetime) -> str:
    return f"{base_name}-{username}-{now.strftime('%Y_%m_%d_%H_%M_%S')}"


class PublishWorkflow:
    """Publishes a source package as a tagged commit of its own repository.

    The run is strictly sequential: validate, clone, check out the source
    revision, branch, purge, republish, commit, tag, then push unless dry-run.
    Any failure aborts the run; nothing reaches the remote before the push.
    """

    def __init__(
        self,
        plan: PublishPlan,
        config: GitpublishConfig | None = None,
        event_emitter: EventEmitter | None = None,
        clock: Callable[[], datetime] = datetime.now,
        username: str | None = None,
    ) -> None:
        self._plan = plan
        self._config = config or GitpublishConfig()
        self._emitter = event_emitter or _NullEmitter()
        self._clock = clock
        self._username = username
        self._step = PublishStep.VALIDATE

    @property
    def step(self) -> PublishStep:
        return self._step

    async def run(self) -> PublishResult:
        plan = self._plan
        start = time.monotonic()
        self._emitter.emit(
            "PublishStarted",
            package_name=plan.package.name,
            version=plan.package.version,
            tags=list(plan.tags),
            dry_run=plan.dry_run,
        )
        try:
            result = await self._run_steps()
        except Exception as e:
            logger.info("Publish failed at %s: %s", self._step.value, e)
            self._emitter.emit("PublishFailed", step=self._step.value, error=str(e))
            raise

        if result.status == PublishStatus.PUBLISHED:
            self._emitter.emit(
                "PublishCompleted",
                commit=result.commit,
                install_references=result.install_references,
                duration_ms=int((time.monotonic() - start) * 1000),
            )
        return result

    def _enter(self, step: PublishStep, detail: str = "") -> None:
        self._step = step
        logger.info("Step %s %s", step.value, detail)
        self._emitter.emit("StepStarted", step=step.value, detail=detail)

    async def _run_steps(self) -> PublishResult:
        plan = self._plan
        publish = self._config.publish

        self._enter(PublishStep.VALIDATE)
        diagnostics = await validate_or_raise(plan)
        for d in diagnostics.warnings:
            logger.warning("[%s] %s", d.rule, d.message)
        source_commit = await plan.source.current_commit_hash()

        url = plan.package.repository_url
        self._enter(PublishStep.CLONE, str(url) if url else "")
        repo = await self._clone(url)

        self._enter(PublishStep.CHECKOUT_REVISION, source_commit)
        await repo.checkout_commit(source_commit)

        self._enter(PublishStep.CREATE_TEMP_BRANCH)
        await self._checkout_temp_branch(repo)

        self._enter(PublishStep.PURGE)
        await self._delete_tracked_files(repo)
        await repo.prune()

        self._enter(PublishStep.REPUBLISH, str(repo.directory))
        await plan.package.publish(repo.directory)

        self._enter(PublishStep.COMMIT)
        await repo.stage_all()
        commit = await repo.commit(publish.commit_message)

        self._enter(PublishStep.TAG, ", ".join(plan.tags))
        await fan_out(self._create_tag(repo, name, commit) for name in plan.tags)

        if plan.dry_run:
            self._enter(PublishStep.DRY_RUN_STOP)
            self._emitter.emit("PublishDryRun", clone_path=str(repo.directory), commit=commit)
            return PublishResult(
                status=PublishStatus.DRY_RUN,
                clone_path=repo.directory,
                commit=commit,
                tags=list(plan.tags),
            )

        self._enter(PublishStep.PUSH, publish.remote)
        await fan_out(self._push_tag(repo, name) for name in plan.tags)

        self._enter(PublishStep.DONE)
        return PublishResult(
            status=PublishStatus.PUBLISHED,
            clone_path=repo.directory,
            commit=commit,
            tags=list(plan.tags),
            install_references=self._install_references(url, commit),
        )

    async def _clone(self, url: RepositoryUrl | None) -> Repository:
        if url is None:
            raise PublishError(
                PublishStep.CLONE,
                f"Invalid repository URL: {self._plan.package.metadata.repository_url!r}",
            )
        tmp_dir = self._config.resolved_tmp_dir()
        if await fs.remove_tree(tmp_dir / url.project_name):
            logger.info("Removed stale clone at %s", tmp_dir / url.project_name)
        return await Repository.clone(url, tmp_dir)

    async def _checkout_temp_branch(self, repo: Repository) -> BranchName:
        username = self._username
        if username is None:
            try:
                username = getpass.getuser()
            except (KeyError, OSError) as e:
                raise PublishError(
                    PublishStep.CREATE_TEMP_BRANCH, "Could not determine the current user name"
                ) from e
        name = temp_branch_name(self._config.publish.branch_base, username, self._clock())
        branch = await BranchName.create(repo, name)
        await repo.checkout_branch(branch, create=True)
        return branch

    async def _delete_tracked_files(self, repo: Repository) -> None:
        files = await repo.files()
        await fan_out(fs.delete_file(path) for path in files)
        logger.info("Deleted %d tracked files in %s", len(files), repo.directory)

    async def _create_tag(self, repo: Repository, name: str, commit: str) -> None:
        publish = self._config.publish
        await repo.create_tag(name, publish.tag_message, annotated=publish.annotated_tags)
        self._emitter.emit("TagCreated", tag=name, commit=commit)

    async def _push_tag(self, repo: Repository, name: str) -> None:
        publish = self._config.publish
        await repo.push_tag(name, publish.remote, force=publish.force_push)
        self._emitter.emit("TagPushed", tag=name, remote=publish.remote)

    def _install_references(self, url: RepositoryUrl, commit: str) -> list[str]:
        name = self._plan.package.name
        return [url.install_reference(name, ref) for ref in [*self._plan.tags, commit]]
