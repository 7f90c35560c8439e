from __future__ import annotations

import os
import tempfile
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from gitpublish.package.source_package import CONFIG_FILENAME, DEFAULT_EXCLUDES


class ConfigError(Exception):
    pass


class PackageConfig(BaseModel):
    exclude: list[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDES))


class PublishConfig(BaseModel):
    branch_base: str = "gitpublish"
    commit_message: str = "Published using gitpublish."
    remote: str = "origin"
    force_push: bool = True
    annotated_tags: bool = False
    tag_message: str = ""


class GitpublishConfig(BaseModel):
    tmp_dir: Path | None = None
    package: PackageConfig = PackageConfig()
    publish: PublishConfig = PublishConfig()
    config_dir: Path | None = None

    def resolved_tmp_dir(self) -> Path:
        if self.tmp_dir is None:
            return Path(tempfile.gettempdir()) / "gitpublish"
        if self.tmp_dir.is_absolute():
            return self.tmp_dir
        return ((self.config_dir or Path.cwd()) / self.tmp_dir).resolve()


def _find_config_file(start: Path | None = None) -> Path | None:
    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent
    return None


def load_config(start: Path | None = None) -> GitpublishConfig:
    config_path = _find_config_file(start)

    if config_path is not None:
        try:
            with open(config_path) as f:
                raw = yaml.safe_load(f) or {}
            config = GitpublishConfig.model_validate(raw)
        except (yaml.YAMLError, ValidationError) as e:
            raise ConfigError(f"Invalid configuration in {config_path}:\n{e}") from e
        config.config_dir = config_path.parent
    else:
        config = GitpublishConfig()

    tmp_dir_env = os.environ.get("GITPUBLISH_TMP_DIR")
    if tmp_dir_env:
        config.tmp_dir = Path(tmp_dir_env)

    return config
