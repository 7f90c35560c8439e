from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer

from gitpublish.config.settings import ConfigError, load_config
from gitpublish.package.source_package import PackageError, SourcePackage
from gitpublish.process import ProcessError


def pack(
    source: Path = typer.Option(Path("."), "--source", help="Directory of the package to pack"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Directory for the archive (default: the package directory)"),
) -> None:
    """Write the package's distributable file set to a .tar.gz archive."""
    source = source.resolve()
    try:
        config = load_config(start=source)
        package = SourcePackage.from_directory(source, exclude=config.package.exclude)
        archive = asyncio.run(package.pack(output))
    except (ConfigError, PackageError, ProcessError, OSError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    typer.echo(str(archive))
