from __future__ import annotations

import logging
from pathlib import Path

from gitpublish import fs
from gitpublish.git import git_ops
from gitpublish.git.branch import BranchName
from gitpublish.package.url import RepositoryUrl

logger = logging.getLogger(__name__)


class RepositoryError(Exception):
    pass


class Repository:
    """A local working copy of a git repository.

    Every operation shells out to git in :attr:`directory`. Failures surface
    as :class:`~gitpublish.process.ProcessError` unchanged; callers decide
    whether they are fatal.
    """

    def __init__(self, directory: Path, remote_url: str | None = None) -> None:
        self._directory = directory.resolve()
        self._remote_url = remote_url

    def __repr__(self) -> str:
        return f"Repository({str(self._directory)!r})"

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def remote_url(self) -> str | None:
        return self._remote_url

    @classmethod
    async def from_directory(cls, directory: Path) -> Repository:
        directory = directory.resolve()
        if not (directory / fs.METADATA_DIR).exists():
            raise RepositoryError(f"Not a git repository: {directory}")
        return cls(directory, await git_ops.remote_url("origin", cwd=directory))

    @classmethod
    async def clone(cls, url: RepositoryUrl | str, destination_parent: Path) -> Repository:
        if isinstance(url, str):
            parsed = RepositoryUrl.from_string(url)
            if parsed is None:
                raise RepositoryError(f"Invalid repository URL: {url}")
            url = parsed

        destination_parent.mkdir(parents=True, exist_ok=True)
        target = destination_parent.resolve() / url.project_name
        logger.info("Cloning %s into %s", url.clone_url, target)
        await git_ops.clone(url.clone_url, target)
        return cls(target, url.clone_url)

    async def modified_files(self) -> list[str]:
        return await git_ops.modified_files(cwd=self._directory)

    async def untracked_files(self) -> list[str]:
        return await git_ops.untracked_files(cwd=self._directory)

    async def tags(self) -> list[str]:
        return await git_ops.list_tags(cwd=self._directory)

    async def current_commit_hash(self) -> str:
        return await git_ops.rev_parse("HEAD", cwd=self._directory)

    async def checkout_commit(self, revision: str) -> None:
        await git_ops.checkout(revision, cwd=self._directory)

    async def checkout_branch(self, branch: BranchName, create: bool = False) -> None:
        if create:
            await git_ops.create_branch(branch.name, cwd=self._directory)
        else:
            await git_ops.checkout(branch.name, cwd=self._directory)

    async def branches(self) -> list[BranchName]:
        return await BranchName.enumerate(self)

    async def stage_all(self) -> None:
        await git_ops.add_all(cwd=self._directory)

    async def commit(self, message: str) -> str:
        return await git_ops.commit(message, cwd=self._directory)

    async def create_tag(self, name: str, message: str = "", annotated: bool = False) -> None:
        await git_ops.tag(name, message=message, annotated=annotated, cwd=self._directory)

    async def push_tag(self, name: str, remote: str = "origin", force: bool = False) -> None:
        await git_ops.push_tag(remote, name, force=force, cwd=self._directory)

    async def files(self) -> list[Path]:
        return [self._directory / rel for rel in await git_ops.list_files(cwd=self._directory)]

    async def prune(self) -> list[Path]:
        return await fs.prune_empty_dirs(self._directory)
