from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from gitpublish.git import git_ops
from gitpublish.process import ProcessError
from gitpublish.validation.predicates import PredicateAggregator

if TYPE_CHECKING:
    from gitpublish.git.repository import Repository


class InvalidBranchName(Exception):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Invalid branch name: {name!r}")


class BranchParseError(Exception):
    def __init__(self, line: str) -> None:
        self.line = line
        super().__init__(f"Could not parse branch listing line: {line!r}")


# Line prefixes git uses for the current branch and for branches checked out
# in another worktree.
_MARKER_RE = re.compile(r"^[*+]\s+")
# remotes/origin/HEAD -> origin/main
_SYMREF_RE = re.compile(r"^[\w./-]+/HEAD\s+->\s+[\w./-]+$")
# (HEAD detached at 1a2b3c4), (no branch, rebasing main)
_DETACHED_RE = re.compile(r"^\((HEAD detached|no branch)\b.*\)$")
_BRANCH_RE = re.compile(r"^(?:remotes/(?P<remote>[\w.-]+)/)?(?P<name>\S+)$")


async def is_valid_branch_name(name: str, cwd: Path | None = None) -> bool:
    """Ask git whether ``name`` is a legal branch name.

    Never raises: any failure of ``git check-ref-format``, including the name
    being rejected, yields ``False``.
    """
    try:
        await git_ops.check_ref_format(name, allow_onelevel=True, cwd=cwd)
    except ProcessError:
        return False
    return True


def parse_branch_listing(text: str) -> list[BranchName]:
    """Parse the output of ``git branch -a``.

    Branch names reported by git are trusted and are not revalidated.
    """
    branches: list[BranchName] = []
    for raw_line in text.splitlines():
        line = _MARKER_RE.sub("", raw_line.strip()).strip()
        if not line or _SYMREF_RE.match(line) or _DETACHED_RE.match(line):
            continue
        match = _BRANCH_RE.match(line)
        if match is None:
            raise BranchParseError(line)
        branches.append(BranchName(name=match.group("name"), remote=match.group("remote")))
    return branches


@dataclass(frozen=True)
class BranchName:
    name: str
    remote: str | None = None

    @property
    def is_remote(self) -> bool:
        return self.remote is not None

    def __str__(self) -> str:
        return f"{self.remote}/{self.name}" if self.remote else self.name

    @classmethod
    async def create(cls, repo: Repository, name: str, remote: str | None = None) -> BranchName:
        async def valid_in_repo(candidate: str) -> bool:
            return await is_valid_branch_name(candidate, cwd=repo.directory)

        validator: PredicateAggregator[str] = PredicateAggregator([valid_in_repo])
        if not await validator.is_valid(name):
            raise InvalidBranchName(name)
        return cls(name=name, remote=remote or None)

    @classmethod
    async def enumerate(cls, repo: Repository) -> list[BranchName]:
        return parse_branch_listing(await git_ops.list_branches(cwd=repo.directory))
