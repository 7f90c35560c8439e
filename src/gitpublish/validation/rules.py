from __future__ import annotations

from pathlib import Path

from packaging.version import InvalidVersion, Version

from gitpublish.git import git_ops
from gitpublish.models.diagnostics import Diagnostic, Severity
from gitpublish.models.plan import PublishPlan
from gitpublish.process import ProcessError
from gitpublish.validation.predicates import PredicateAggregator


async def is_valid_tag_name(name: str, cwd: Path | None = None) -> bool:
    try:
        await git_ops.check_ref_format(f"refs/tags/{name}", cwd=cwd)
    except ProcessError:
        return False
    return True


async def clean_working_tree(plan: PublishPlan) -> list[Diagnostic]:
    modified = await plan.source.modified_files()
    if not modified:
        return []
    return [
        Diagnostic(
            rule="clean_working_tree",
            severity=Severity.ERROR,
            message="This repository contains modified files.",
            paths=modified,
            suggestion="Commit or stash your changes before publishing",
        )
    ]


async def no_untracked_files(plan: PublishPlan) -> list[Diagnostic]:
    untracked = await plan.source.untracked_files()
    if not untracked:
        return []
    return [
        Diagnostic(
            rule="no_untracked_files",
            severity=Severity.ERROR,
            message="This repository contains untracked files.",
            paths=untracked,
            suggestion="Commit, ignore or remove untracked files before publishing",
        )
    ]


async def package_version(plan: PublishPlan) -> list[Diagnostic]:
    version = plan.package.version
    if not version:
        return [
            Diagnostic(
                rule="package_version",
                severity=Severity.ERROR,
                message="Package does not have a version.",
                suggestion="Set [project].version in pyproject.toml",
            )
        ]
    try:
        Version(version)
    except InvalidVersion:
        return [
            Diagnostic(
                rule="package_version",
                severity=Severity.WARNING,
                message=f"Version '{version}' is not a valid PEP 440 version",
            )
        ]
    return []


async def tags_requested(plan: PublishPlan) -> list[Diagnostic]:
    if plan.tags:
        return []
    return [
        Diagnostic(
            rule="tags_requested",
            severity=Severity.ERROR,
            message="At least one tag must be applied by using either --tag-version or --tag.",
            suggestion="An untagged publish commit would be garbage collected",
        )
    ]


async def tag_names(plan: PublishPlan) -> list[Diagnostic]:
    async def valid_in_source(name: str) -> bool:
        return await is_valid_tag_name(name, cwd=plan.source.directory)

    validator: PredicateAggregator[str] = PredicateAggregator([valid_in_source])
    return [
        Diagnostic(
            rule="tag_names",
            severity=Severity.ERROR,
            message=f"Invalid tag name: '{name}'",
        )
        for name in plan.tags
        if not await validator.is_valid(name)
    ]


async def tags_unique(plan: PublishPlan) -> list[Diagnostic]:
    existing = set(await plan.source.tags())
    already_exist = [t for t in plan.tags if t in existing]
    if not already_exist:
        return []
    return [
        Diagnostic(
            rule="tags_unique",
            severity=Severity.ERROR,
            message=f"The following tags already exist: {', '.join(already_exist)}",
            suggestion="Choose new tag names or bump the package version",
        )
    ]


async def tags_unpublished(plan: PublishPlan) -> list[Diagnostic]:
    """Tags pushed by an earlier publish live only in the target repository."""
    url = plan.package.repository_url
    if url is None or not plan.tags:
        return []
    try:
        published = set(await git_ops.ls_remote_tags(url.clone_url, cwd=plan.source.directory))
    except ProcessError as e:
        return [
            Diagnostic(
                rule="tags_unique",
                severity=Severity.ERROR,
                message=f"Could not list the tags of {url.clone_url}: {e.stderr or e}",
                suggestion="Check the repository URL in pyproject.toml and that the remote is reachable",
            )
        ]
    already_published = [t for t in plan.tags if t in published]
    if not already_published:
        return []
    return [
        Diagnostic(
            rule="tags_unique",
            severity=Severity.ERROR,
            message=(
                f"The following tags already exist in {url.clone_url}: "
                f"{', '.join(already_published)}"
            ),
            suggestion="Choose new tag names or bump the package version",
        )
    ]


ALL_RULES = [
    clean_working_tree,
    no_untracked_files,
    package_version,
    tags_requested,
    tag_names,
    tags_unique,
]


# These contact the target repository and run only once every local rule passes.
TARGET_RULES = [
    tags_unpublished,
]
