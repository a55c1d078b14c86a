"""
Error catalog for semver-next.

Every error carries a stable code and a human message. The core raises these;
only the CLI and the service translate them into exit codes or HTTP responses.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable

if TYPE_CHECKING:
    from .models import Result


class SemverNextError(Exception):
    code = "SEMVER_NEXT_ERROR"

    def __init__(self, message: str, detail: Any = None):
        self.message = message
        self.detail = detail
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "error_code": self.code,
            "message": self.message,
        }
        if self.detail:
            d["detail"] = self.detail
        return d


class InvalidInput(SemverNextError):
    """Bad caller input, always detected before any GitHub call."""

    code = "INVALID_INPUT"


class InvalidBumpRange(InvalidInput):
    def __init__(self):
        super().__init__("minBump must be less than or equal to maxBump")


class NotFound(SemverNextError):
    code = "NOT_FOUND"


class TransportError(SemverNextError):
    """A GitHub call failed. Never retried by the core."""

    code = "TRANSPORT_ERROR"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        detail: Any = None,
        errors: list[BaseException] | None = None,
    ):
        self.status_code = status_code
        self.errors: list[BaseException] = errors or []
        super().__init__(message, detail=detail)

    @classmethod
    def join(cls, errors: Iterable[BaseException]) -> BaseException:
        errors = list(errors)
        if len(errors) == 1:
            return errors[0]
        return cls("\n".join(str(e) for e in errors), detail=[str(e) for e in errors], errors=errors)


class PolicyViolation(SemverNextError):
    """The computation succeeded but a requested policy rejects the outcome."""

    code = "POLICY_VIOLATION"

    def __init__(self, message: str, result: Result, detail: Any = None):
        self.result = result
        super().__init__(message, detail=detail)


class UnlabeledCommitsError(PolicyViolation):
    code = "UNLABELED_COMMITS"


class NoChangeError(PolicyViolation):
    code = "NO_CHANGE"

    def __init__(self, result: Result):
        super().__init__(f"no change since {result.previous_version}", result)


class ValidationError(SemverNextError):
    code = "VALIDATION_FAILED"

    def __init__(self, number: int, shas: list[str]):
        self.number = number
        self.shas = shas
        super().__init__(
            f"pull request #{number} has no recognized label and these commits "
            f"have no recognized message prefix: {', '.join(shas)}",
            detail=shas,
        )
