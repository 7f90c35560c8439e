from __future__ import annotations

import asyncio
from pathlib import Path

import typer

from gitpublish.config.settings import ConfigError, load_config
from gitpublish.git import git_ops
from gitpublish.git.repository import Repository, RepositoryError
from gitpublish.package.source_package import PackageError, SourcePackage
from gitpublish.process import ProcessError


def doctor(
    source: Path = typer.Option(Path("."), "--source", help="Directory of the package to check"),
) -> None:
    """Check that git, the repository and the package metadata are usable."""
    source = source.resolve()
    failed = False

    try:
        typer.echo(f"git: OK ({asyncio.run(git_ops.version())})")
    except ProcessError as e:
        typer.echo(f"git: FAILED — {e.stderr or e}")
        raise typer.Exit(code=1)

    try:
        repo = asyncio.run(Repository.from_directory(source))
        typer.echo(f"Repository: OK ({repo.directory})")
    except RepositoryError as e:
        typer.echo(f"Repository: FAILED — {e}")
        failed = True

    try:
        config = load_config(start=source)
        location = config.config_dir / "gitpublish.yaml" if config.config_dir else "defaults"
        typer.echo(f"Config: OK ({location})")
    except ConfigError as e:
        typer.echo(f"Config: FAILED — {e}")
        raise typer.Exit(code=1)

    try:
        package = SourcePackage.from_directory(source, exclude=config.package.exclude)
    except PackageError as e:
        typer.echo(f"Package: FAILED — {e}")
        raise typer.Exit(code=1)

    typer.echo(f"Package: {package.name} {package.version or '(no version)'}")
    if not package.version:
        failed = True

    url = package.repository_url
    if url is None:
        typer.echo(f"Repository URL: FAILED — {package.metadata.repository_url or 'not declared'}")
        failed = True
    else:
        typer.echo(f"Repository URL: OK ({url.clone_url})")

    typer.echo(f"Clone directory: {config.resolved_tmp_dir()}")

    if failed:
        raise typer.Exit(code=1)
