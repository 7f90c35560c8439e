from __future__ import annotations

from gitpublish.models.diagnostics import DiagnosticCollection
from gitpublish.models.plan import PublishPlan
from gitpublish.validation.rules import ALL_RULES, TARGET_RULES


class ValidationError(Exception):
    def __init__(self, diagnostics: DiagnosticCollection) -> None:
        self.diagnostics = diagnostics
        errors = diagnostics.errors
        messages = [f"  [{d.rule}] {d.message}" for d in errors]
        super().__init__(f"Validation failed with {len(errors)} error(s):\n" + "\n".join(messages))


async def validate(plan: PublishPlan) -> DiagnosticCollection:
    collection = DiagnosticCollection()
    for rule in ALL_RULES:
        collection.extend(await rule(plan))
    if collection.has_errors:
        return collection
    for rule in TARGET_RULES:
        collection.extend(await rule(plan))
    return collection


async def validate_or_raise(plan: PublishPlan) -> DiagnosticCollection:
    collection = await validate(plan)
    if collection.has_errors:
        raise ValidationError(collection)
    return collection
