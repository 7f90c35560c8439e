import asyncio
import logging
import tarfile
from pathlib import Path, PurePosixPath

import pytest

from gitpublish.package.source_package import (
    DEFAULT_EXCLUDES,
    PackageError,
    SourcePackage,
    is_excluded,
)
from gitutil import git, make_published_project, write_package


def _write_pyproject(path: Path, body: str) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    (path / "pyproject.toml").write_text(body)
    return path


class TestMetadata:
    def test_reads_name_version_and_url(self, tmp_path: Path) -> None:
        write_package(tmp_path, "https://github.com/acme/widget.git")
        package = SourcePackage.from_directory(tmp_path)
        assert package.name == "widget"
        assert package.version == "1.2.3"
        assert package.repository_url.clone_url == "https://github.com/acme/widget.git"
        assert package.archive_name == "widget-1.2.3.tar.gz"

    def test_tool_table_overrides_project_urls(self, tmp_path: Path) -> None:
        _write_pyproject(
            tmp_path,
            '[project]\nname = "widget"\nversion = "1.0"\n'
            '[project.urls]\nHomepage = "https://example.com/docs"\n'
            '[tool.gitpublish]\nrepository = "git@github.com:acme/widget.git"\n',
        )
        package = SourcePackage.from_directory(tmp_path)
        assert package.repository_url.clone_url == "ssh://git@github.com/acme/widget.git"

    def test_url_key_lookup_is_case_insensitive(self, tmp_path: Path) -> None:
        _write_pyproject(
            tmp_path,
            '[project]\nname = "widget"\nversion = "1.0"\n'
            '[project.urls]\n"Source Code" = "https://github.com/acme/widget"\n',
        )
        assert SourcePackage.from_directory(tmp_path).repository_url.project_name == "widget"

    def test_missing_version_and_url(self, tmp_path: Path) -> None:
        _write_pyproject(tmp_path, '[project]\nname = "widget"\n')
        package = SourcePackage.from_directory(tmp_path)
        assert package.version == ""
        assert package.repository_url is None

    def test_dynamic_version_warns(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        _write_pyproject(tmp_path, '[project]\nname = "widget"\ndynamic = ["version"]\n')
        with caplog.at_level(logging.WARNING, logger="gitpublish.package.source_package"):
            package = SourcePackage.from_directory(tmp_path)
        assert package.version == ""
        assert "dynamic version" in caplog.text

    def test_missing_directory(self, tmp_path: Path) -> None:
        with pytest.raises(PackageError, match="does not exist"):
            SourcePackage.from_directory(tmp_path / "missing")

    def test_missing_pyproject(self, tmp_path: Path) -> None:
        with pytest.raises(PackageError, match="No pyproject.toml"):
            SourcePackage.from_directory(tmp_path)

    def test_malformed_pyproject(self, tmp_path: Path) -> None:
        _write_pyproject(tmp_path, "[project\nname=")
        with pytest.raises(PackageError, match="Malformed"):
            SourcePackage.from_directory(tmp_path)

    def test_missing_name(self, tmp_path: Path) -> None:
        _write_pyproject(tmp_path, '[project]\nversion = "1.0"\n')
        with pytest.raises(PackageError, match="name"):
            SourcePackage.from_directory(tmp_path)


class TestIsExcluded:
    @pytest.mark.parametrize(
        "path",
        ["tests/test_core.py", "src/widget/__pycache__/core.cpython-312.pyc", "gitpublish.yaml", ".github/ci.yml"],
    )
    def test_default_excludes(self, path: str) -> None:
        assert is_excluded(PurePosixPath(path), DEFAULT_EXCLUDES)

    @pytest.mark.parametrize("path", ["src/widget/core.py", "README.md", "pyproject.toml"])
    def test_default_includes(self, path: str) -> None:
        assert not is_excluded(PurePosixPath(path), DEFAULT_EXCLUDES)

    def test_full_path_pattern(self) -> None:
        assert is_excluded(PurePosixPath("docs/build/index.html"), ["docs/build/*"])
        assert not is_excluded(PurePosixPath("docs/index.html"), ["docs/build/*"])


class TestFiles:
    def test_tracked_files_from_git(self, tmp_path: Path) -> None:
        dev, _ = make_published_project(tmp_path)
        (dev / "scratch.txt").write_text("untracked\n")
        files = asyncio.run(SourcePackage.from_directory(dev).files())
        assert files == [
            PurePosixPath("README.md"),
            PurePosixPath("pyproject.toml"),
            PurePosixPath("src/widget/__init__.py"),
            PurePosixPath("src/widget/core.py"),
        ]

    def test_walks_plain_directory(self, tmp_path: Path) -> None:
        write_package(tmp_path, "https://github.com/acme/widget.git")
        (tmp_path / "src" / "widget" / "__pycache__").mkdir()
        (tmp_path / "src" / "widget" / "__pycache__" / "core.cpython-312.pyc").write_bytes(b"\0")
        files = asyncio.run(SourcePackage.from_directory(tmp_path).files())
        assert PurePosixPath("src/widget/core.py") in files
        assert all("__pycache__" not in f.parts and f.parts[0] != "tests" for f in files)

    def test_custom_excludes(self, tmp_path: Path) -> None:
        write_package(tmp_path, "https://github.com/acme/widget.git")
        files = asyncio.run(SourcePackage.from_directory(tmp_path, exclude=["README.md"]).files())
        assert PurePosixPath("README.md") not in files
        assert PurePosixPath("tests/test_core.py") in files


class TestPublish:
    def test_copies_file_set(self, tmp_path: Path) -> None:
        dev, _ = make_published_project(tmp_path)
        destination = tmp_path / "out"
        published = asyncio.run(SourcePackage.from_directory(dev).publish(destination))
        assert len(published) == 4
        assert (destination / "src" / "widget" / "core.py").read_text() == "def answer():\n    return 42\n"
        assert not (destination / "tests").exists()


class TestPack:
    def test_writes_archive(self, tmp_path: Path) -> None:
        dev, _ = make_published_project(tmp_path)
        archive = asyncio.run(SourcePackage.from_directory(dev).pack(tmp_path / "dist"))
        assert archive == (tmp_path / "dist" / "widget-1.2.3.tar.gz").resolve()
        with tarfile.open(archive) as tar:
            names = sorted(tar.getnames())
        assert names == [
            "widget-1.2.3/README.md",
            "widget-1.2.3/pyproject.toml",
            "widget-1.2.3/src/widget/__init__.py",
            "widget-1.2.3/src/widget/core.py",
        ]

    def test_defaults_to_package_directory(self, tmp_path: Path) -> None:
        write_package(tmp_path, "https://github.com/acme/widget.git", version="0.1.0")
        archive = asyncio.run(SourcePackage.from_directory(tmp_path).pack())
        assert archive == tmp_path.resolve() / "widget-0.1.0.tar.gz"
        assert archive.is_file()

    def test_requires_version(self, tmp_path: Path) -> None:
        _write_pyproject(tmp_path, '[project]\nname = "widget"\n')
        with pytest.raises(PackageError, match="does not have a version"):
            asyncio.run(SourcePackage.from_directory(tmp_path).pack())

    def test_tracked_deletions_are_not_packed(self, tmp_path: Path) -> None:
        dev, _ = make_published_project(tmp_path)
        git("rm", "-q", "README.md", cwd=dev)
        git("commit", "-m", "Drop readme", cwd=dev)
        archive = asyncio.run(SourcePackage.from_directory(dev).pack(tmp_path / "dist"))
        with tarfile.open(archive) as tar:
            assert "widget-1.2.3/README.md" not in tar.getnames()
