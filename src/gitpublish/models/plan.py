from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gitpublish.git.repository import Repository
    from gitpublish.package.source_package import SourcePackage


def resolve_tags(explicit: Iterable[str], version: str, tag_version: bool) -> tuple[str, ...]:
    """Explicit tags first, then ``v<version>`` if requested; duplicates dropped."""
    tags = [t for t in explicit if t]
    if tag_version and version:
        tags.append(f"v{version}")
    return tuple(dict.fromkeys(tags))


@dataclass(frozen=True)
class PublishPlan:
    source: Repository
    package: SourcePackage
    tags: tuple[str, ...]
    dry_run: bool = False

    @classmethod
    def build(
        cls,
        source: Repository,
        package: SourcePackage,
        explicit_tags: Iterable[str] = (),
        tag_version: bool = False,
        dry_run: bool = False,
    ) -> PublishPlan:
        return cls(
            source=source,
            package=package,
            tags=resolve_tags(explicit_tags, package.version, tag_version),
            dry_run=dry_run,
        )
