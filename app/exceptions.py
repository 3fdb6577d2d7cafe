"""
Error taxonomy for the eligibility scoring core.

Every error raised by the scoring, editing and history layers derives from
EligibilityError so the API layer can translate them in one place. Scoring
errors are never defaulted away: a catalog that cannot score a customer
must be visible to the caller.
"""


class EligibilityError(Exception):
    """Base class for all eligibility core errors."""


class ValidationError(EligibilityError):
    """Bad input to the configuration editor or scoring inputs."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class InvalidAttributeValue(ValidationError):
    """A customer attribute could not be coerced to a finite number."""


class NotFoundError(EligibilityError):
    """Unknown rule, threshold, snapshot or customer id."""

    def __init__(self, entity: str, entity_id):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class NoMatchingRule(EligibilityError):
    """Zero or several bands of a rule family contain the value."""

    def __init__(self, category, rule_name: str, value: float, candidates: list | None = None):
        candidates = candidates or []
        if candidates:
            detail = f"{len(candidates)} overlapping bands"
        else:
            detail = "no band"
        category_name = getattr(category, "value", category)
        super().__init__(
            f"{category_name}/{rule_name}: {detail} contains value {value}"
        )
        self.category = category
        self.rule_name = rule_name
        self.value = value
        self.candidates = candidates


class NoThresholdMatch(EligibilityError):
    """The threshold ladder is empty."""


class PartialRestoreFailure(EligibilityError):
    """A restore stopped partway through."""

    def __init__(
        self,
        message: str,
        restored: list[str],
        not_restored: list[str],
        failed_id: str | None = None,
    ):
        super().__init__(message)
        self.restored = restored
        self.not_restored = not_restored
        self.failed_id = failed_id

    def to_dict(self) -> dict:
        return {
            "message": str(self),
            "failed_id": self.failed_id,
            "restored": self.restored,
            "not_restored": self.not_restored,
        }


class BackendUnavailable(EligibilityError):
    """A persistence backend call failed."""


class HistoryBusy(EligibilityError):
    """The history manager is already snapshotting or restoring."""
