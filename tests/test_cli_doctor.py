from pathlib import Path
from unittest.mock import AsyncMock, patch

from typer.testing import CliRunner

from gitpublish.cli.main import app
from gitpublish.process import ProcessError
from gitutil import make_published_project

runner = CliRunner()


def test_doctor_healthy(tmp_path: Path) -> None:
    dev, bare = make_published_project(tmp_path)
    result = runner.invoke(app, ["doctor", "--source", str(dev)])
    assert result.exit_code == 0, result.output
    assert "git: OK (git version" in result.output
    assert "Repository: OK" in result.output
    assert "Config: OK (defaults)" in result.output
    assert "Package: widget 1.2.3" in result.output
    assert f"Repository URL: OK (file://{bare})" in result.output
    assert "Clone directory:" in result.output


def test_doctor_reports_config_file(tmp_path: Path) -> None:
    dev, _ = make_published_project(tmp_path)
    (tmp_path / "gitpublish.yaml").write_text("tmp_dir: build\n")
    result = runner.invoke(app, ["doctor", "--source", str(dev)])
    assert result.exit_code == 0, result.output
    assert f"Config: OK ({tmp_path.resolve() / 'gitpublish.yaml'})" in result.output
    assert f"Clone directory: {(tmp_path / 'build').resolve()}" in result.output


def test_doctor_git_missing(tmp_path: Path) -> None:
    error = ProcessError(["git", "--version"], 127, "No such file or directory")
    with patch("gitpublish.cli.doctor.git_ops.version", AsyncMock(side_effect=error)):
        result = runner.invoke(app, ["doctor", "--source", str(tmp_path)])
    assert result.exit_code == 1
    assert "git: FAILED" in result.output


def test_doctor_not_a_package(tmp_path: Path) -> None:
    result = runner.invoke(app, ["doctor", "--source", str(tmp_path)])
    assert result.exit_code == 1
    assert "Repository: FAILED" in result.output
    assert "Package: FAILED" in result.output


def test_doctor_missing_version_and_url(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text('[project]\nname = "widget"\n')
    result = runner.invoke(app, ["doctor", "--source", str(tmp_path)])
    assert result.exit_code == 1
    assert "Package: widget (no version)" in result.output
    assert "Repository URL: FAILED — not declared" in result.output
