"""
Error types for Pareto selection.
Every error carries a machine-readable code and structured details so callers
can report it without parsing the message.
"""

from typing import Any, Dict, List, Optional


class ParetoSelectionError(Exception):
    """Base exception for selection errors."""

    def __init__(
        self,
        message: str,
        code: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a structured error payload."""
        return {
            "error": {
                "code": self.code,
                "message": str(self),
                "details": self.details,
            }
        }


class ValidationError(ParetoSelectionError):
    """Raised when input to an operation is malformed."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, code, details)


class MissingObjectiveError(ValidationError):
    """Raised when a candidate lacks a declared objective."""

    def __init__(self, candidate_id: str, objective: str):
        super().__init__(
            f"Candidate {candidate_id} is missing objective '{objective}'",
            "MISSING_OBJECTIVE",
            {"candidate_id": candidate_id, "objective": objective},
        )


class UnknownObjectiveError(ValidationError):
    """Raised when a candidate reports an objective that was never declared."""

    def __init__(self, candidate_id: str, objective: str):
        super().__init__(
            f"Candidate {candidate_id} has undeclared objective '{objective}'",
            "UNKNOWN_OBJECTIVE",
            {"candidate_id": candidate_id, "objective": objective},
        )


class MissingAnnotationError(ValidationError):
    """Raised when a candidate lacks rank, crowding or normalized values."""

    def __init__(self, candidate_id: str, annotation: str):
        super().__init__(
            f"Candidate {candidate_id} is missing required annotation '{annotation}'",
            "MISSING_ANNOTATION",
            {"candidate_id": candidate_id, "annotation": annotation},
        )


class DuplicateCandidateError(ValidationError):
    """Raised when the same candidate id appears twice in one population."""

    def __init__(self, candidate_id: str):
        super().__init__(
            f"Duplicate candidate id: {candidate_id}",
            "DUPLICATE_CANDIDATE",
            {"candidate_id": candidate_id},
        )


class InvalidReferencePointError(ValidationError):
    """Raised when a reference point is not dominated by every solution."""

    def __init__(self, reason: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            f"Invalid reference point: {reason}",
            "INVALID_REFERENCE_POINT",
            details,
        )


class InvalidConfigError(ValidationError):
    """Raised when configuration is invalid."""

    def __init__(self, errors: List[str]):
        super().__init__(
            "Invalid configuration: " + "; ".join(errors),
            "INVALID_CONFIG",
            {"errors": errors},
        )
