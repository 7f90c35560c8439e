from __future__ import annotations

import asyncio
import logging
import os
import tarfile
import tomllib
from collections.abc import Sequence
from fnmatch import fnmatch
from pathlib import Path, PurePosixPath

from pydantic import BaseModel

from gitpublish import fs
from gitpublish.engine.fanout import fan_out
from gitpublish.git import git_ops
from gitpublish.package.url import RepositoryUrl

logger = logging.getLogger(__name__)

PYPROJECT = "pyproject.toml"
CONFIG_FILENAME = "gitpublish.yaml"

DEFAULT_EXCLUDES = (
    ".git",
    ".github",
    "__pycache__",
    "*.py[cod]",
    ".pytest_cache",
    "tests",
    CONFIG_FILENAME,
)

# Checked in order against [project.urls], case-insensitively.
_URL_KEYS = ("repository", "source", "source code", "code", "homepage")


class PackageError(Exception):
    pass


class PackageMetadata(BaseModel):
    name: str
    version: str = ""
    repository_url: str = ""


def _read_metadata(pyproject: Path) -> PackageMetadata:
    try:
        with open(pyproject, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise PackageError(f"Malformed {pyproject}: {e}") from e

    project = data.get("project", {})
    name = project.get("name")
    if not name:
        raise PackageError(f"{pyproject} does not declare [project].name")

    version = project.get("version", "")
    if not version and "version" in project.get("dynamic", []):
        logger.warning("%s uses a dynamic version, which cannot be read statically", pyproject)

    repository_url = data.get("tool", {}).get("gitpublish", {}).get("repository", "")
    if not repository_url:
        urls = {key.lower(): value for key, value in project.get("urls", {}).items()}
        repository_url = next((urls[key] for key in _URL_KEYS if urls.get(key)), "")

    return PackageMetadata(name=name, version=str(version), repository_url=repository_url)


def is_excluded(relative: PurePosixPath, patterns: Sequence[str]) -> bool:
    return any(
        fnmatch(str(relative), pattern) or any(fnmatch(part, pattern) for part in relative.parts)
        for pattern in patterns
    )


class SourcePackage:
    """A Python source package described by its ``pyproject.toml``."""

    def __init__(
        self,
        directory: Path,
        metadata: PackageMetadata,
        exclude: Sequence[str] = DEFAULT_EXCLUDES,
    ) -> None:
        self._directory = directory.resolve()
        self.metadata = metadata
        self.exclude = list(exclude)

    @classmethod
    def from_directory(cls, directory: Path, exclude: Sequence[str] = DEFAULT_EXCLUDES) -> SourcePackage:
        if not directory.is_dir():
            raise PackageError(f"Package directory does not exist: {directory}")
        pyproject = directory / PYPROJECT
        if not pyproject.is_file():
            raise PackageError(f"No {PYPROJECT} found in {directory}")
        return cls(directory, _read_metadata(pyproject), exclude)

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def version(self) -> str:
        return self.metadata.version

    @property
    def repository_url(self) -> RepositoryUrl | None:
        return RepositoryUrl.from_string(self.metadata.repository_url)

    @property
    def archive_name(self) -> str:
        return f"{self.name}-{self.version}.tar.gz"

    async def files(self) -> list[PurePosixPath]:
        """Relative paths of the files that make up the distributable package."""
        if (self._directory / fs.METADATA_DIR).exists():
            candidates = await git_ops.list_files(cwd=self._directory)
        else:
            candidates = await asyncio.to_thread(self._walk)
        return sorted(
            relative
            for relative in map(PurePosixPath, candidates)
            if not is_excluded(relative, self.exclude)
        )

    def _walk(self) -> list[str]:
        found: list[str] = []
        for dirpath, dirnames, filenames in os.walk(self._directory):
            dirnames[:] = [d for d in dirnames if d != fs.METADATA_DIR]
            for filename in filenames:
                found.append(Path(dirpath, filename).relative_to(self._directory).as_posix())
        return found

    async def publish(self, destination: Path) -> list[PurePosixPath]:
        """Copy the package's file set into ``destination``."""
        files = await self.files()
        await fan_out(fs.copy_file(self._directory / rel, destination / rel) for rel in files)
        logger.info("Published %d files from %s to %s", len(files), self._directory, destination)
        return files

    async def pack(self, output_dir: Path | None = None) -> Path:
        """Write ``<name>-<version>.tar.gz`` to ``output_dir`` (default: the package directory)."""
        if not self.version:
            raise PackageError(f"Package {self.name} does not have a version")
        output_dir = (output_dir or self._directory).resolve()
        output_dir.mkdir(parents=True, exist_ok=True)
        archive = output_dir / self.archive_name
        files = await self.files()
        await asyncio.to_thread(self._write_archive, archive, files)
        logger.info("Packed %d files into %s", len(files), archive)
        return archive

    def _write_archive(self, archive: Path, files: list[PurePosixPath]) -> None:
        root = PurePosixPath(f"{self.name}-{self.version}")
        with tarfile.open(archive, "w:gz") as tar:
            for rel in files:
                tar.add(self._directory / rel, arcname=str(root / rel), recursive=False)
