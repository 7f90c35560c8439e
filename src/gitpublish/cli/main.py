import logging
from importlib.metadata import PackageNotFoundError, version
from typing import Optional

import typer

from gitpublish.cli.doctor import doctor as doctor_command
from gitpublish.cli.pack import pack as pack_command
from gitpublish.cli.publish import publish as publish_command

app = typer.Typer(name="gitpublish", help="Publish a Python package to its Git repository")
app.command(name="publish")(publish_command)
app.command(name="pack")(pack_command)
app.command(name="doctor")(doctor_command)


def _version_callback(value: bool) -> None:
    if not value:
        return
    try:
        typer.echo(version("gitpublish"))
    except PackageNotFoundError:
        typer.echo("unknown")
    raise typer.Exit()


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every git command"),
    show_version: Optional[bool] = typer.Option(
        None, "--version", callback=_version_callback, is_eager=True, help="Show the version and exit"
    ),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())


if __name__ == "__main__":
    app()
