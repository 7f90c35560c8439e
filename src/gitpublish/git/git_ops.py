from __future__ import annotations

from pathlib import Path

from gitpublish import process
from gitpublish.process import ProcessError

GIT = "git"


async def run_git(*args: str, cwd: Path | None = None) -> str:
    return await process.run(GIT, args, cwd=cwd)


def _lines(output: str) -> list[str]:
    return output.splitlines() if output else []


def _paths(output: str) -> list[str]:
    return [entry for entry in output.split("\0") if entry]


async def rev_parse(ref: str, *, cwd: Path) -> str:
    return await run_git("rev-parse", ref, cwd=cwd)


async def check_ref_format(name: str, *, allow_onelevel: bool = False, cwd: Path | None = None) -> None:
    args = ["check-ref-format"]
    if allow_onelevel:
        args.append("--allow-onelevel")
    args.append(name)
    await run_git(*args, cwd=cwd)


async def list_branches(*, cwd: Path) -> str:
    return await run_git("branch", "-a", cwd=cwd)


async def list_tags(*, cwd: Path) -> list[str]:
    return _lines(await run_git("tag", "--list", cwd=cwd))


async def list_files(*, cwd: Path) -> list[str]:
    return _paths(await run_git("ls-files", "-z", cwd=cwd))


async def modified_files(*, cwd: Path) -> list[str]:
    unstaged = _paths(await run_git("ls-files", "-z", "--modified", cwd=cwd))
    staged = _paths(await run_git("diff", "-z", "--cached", "--name-only", cwd=cwd))
    return list(dict.fromkeys(unstaged + staged))


async def untracked_files(*, cwd: Path) -> list[str]:
    return _paths(await run_git("ls-files", "-z", "--others", "--exclude-standard", cwd=cwd))


async def checkout(ref: str, *, cwd: Path) -> None:
    await run_git("checkout", ref, cwd=cwd)


async def create_branch(name: str, *, cwd: Path) -> None:
    await run_git("checkout", "-b", name, cwd=cwd)


async def add_all(*, cwd: Path) -> None:
    await run_git("add", "--all", cwd=cwd)


async def commit(message: str, *, cwd: Path) -> str:
    await run_git("commit", "-m", message, cwd=cwd)
    return await rev_parse("HEAD", cwd=cwd)


async def tag(name: str, *, message: str = "", annotated: bool = False, cwd: Path) -> None:
    if annotated:
        await run_git("tag", "-a", name, "-m", message or name, cwd=cwd)
    else:
        await run_git("tag", name, cwd=cwd)


async def push_tag(remote: str, name: str, *, force: bool = False, cwd: Path) -> None:
    args = ["push"]
    if force:
        args.append("--force")
    args.extend([remote, f"refs/tags/{name}"])
    await run_git(*args, cwd=cwd)


async def clone(url: str, target: Path) -> None:
    await run_git("clone", url, target.name, cwd=target.parent)


async def remote_url(remote: str = "origin", *, cwd: Path) -> str | None:
    try:
        return await run_git("config", "--get", f"remote.{remote}.url", cwd=cwd) or None
    except ProcessError:
        return None


async def version() -> str:
    return await run_git("--version")


async def ls_remote_tags(url: str, *, cwd: Path | None = None) -> list[str]:
    names: list[str] = []
    for line in _lines(await run_git("ls-remote", "--tags", url, cwd=cwd)):
        ref = line.split("\t", 1)[-1]
        if ref.endswith("^{}"):
            continue
        names.append(ref.removeprefix("refs/tags/"))
    return names
