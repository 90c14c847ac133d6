"""
Error taxonomy for the skill context engine.

Every error carries a stable code and a details dict so it can be placed
into a turn Decision as a structured value instead of being raised and
forgotten.
"""

from typing import Any, Dict, Optional


# ===== Error codes =====

class ErrorCode:
    """Standard error codes"""

    # Catalog build time
    MALFORMED_DESCRIPTOR = "MALFORMED_DESCRIPTOR"
    INVALID_SKILL = "INVALID_SKILL"
    NOT_FOUND = "NOT_FOUND"

    # Session start
    BUDGET_TOO_SMALL_FOR_IDENTITY = "BUDGET_TOO_SMALL_FOR_IDENTITY"

    # Per turn
    REJECTED = "REJECTED"
    DENIED = "DENIED"
    MODE_BLEED = "MODE_BLEED"
    UNTRACED_TRANSITION = "UNTRACED_TRANSITION"
    UNKNOWN_MODE = "UNKNOWN_MODE"
    EPHEMERAL_DEPENDENCY = "EPHEMERAL_DEPENDENCY"
    UNMET_PRECONDITION = "UNMET_PRECONDITION"


# ===== Exceptions =====

class EngineError(Exception):
    """
    Base class for engine errors.

    Carries a structured payload (code + details) so callers can surface
    the error in a Decision or a log record without parsing the message.
    """

    def __init__(
        self,
        message: str,
        code: str = ErrorCode.MALFORMED_DESCRIPTOR,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": dict(self.details),
        }


class MalformedDescriptorError(EngineError):
    """A skill descriptor failed catalog validation."""

    def __init__(
        self,
        message: str,
        descriptor_id: Optional[str] = None,
        pack_id: Optional[str] = None,
    ):
        details: Dict[str, Any] = {}
        if descriptor_id is not None:
            details["descriptor_id"] = descriptor_id
        if pack_id is not None:
            details["pack_id"] = pack_id

        super().__init__(
            message=message,
            code=ErrorCode.MALFORMED_DESCRIPTOR,
            details=details,
        )
        self.descriptor_id = descriptor_id
        self.pack_id = pack_id


class SkillNotFoundError(EngineError):
    """Lookup of an unknown descriptor identifier."""

    def __init__(self, descriptor_id: str):
        super().__init__(
            message=f"Skill '{descriptor_id}' not found",
            code=ErrorCode.NOT_FOUND,
            details={"descriptor_id": descriptor_id},
        )
        self.descriptor_id = descriptor_id


class BudgetTooSmallForIdentityError(EngineError):
    """The Identity overhead does not fit the configured budget."""

    def __init__(self, budget: int, identity_overhead: int):
        super().__init__(
            message=(
                f"Budget {budget} cannot hold the identity overhead "
                f"of {identity_overhead}"
            ),
            code=ErrorCode.BUDGET_TOO_SMALL_FOR_IDENTITY,
            details={"budget": budget, "identity_overhead": identity_overhead},
        )


class ModeBleedError(EngineError):
    """A mode change or mode prerequisite was inferred instead of requested."""

    def __init__(
        self,
        message: str,
        code: str = ErrorCode.MODE_BLEED,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, code=code, details=details)


class EphemeralStateError(EngineError):
    """A decision depends only on per-turn working memory."""

    def __init__(self, key: str, descriptor_id: Optional[str] = None):
        details: Dict[str, Any] = {"key": key}
        if descriptor_id:
            details["descriptor_id"] = descriptor_id
        super().__init__(
            message=f"'{key}' is only available in working memory",
            code=ErrorCode.EPHEMERAL_DEPENDENCY,
            details=details,
        )


class CatalogLoadError(EngineError):
    """Base exception for pack/skill loading errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code=ErrorCode.INVALID_SKILL, details=details)


class InvalidSkillError(CatalogLoadError):
    """Raised when a SKILL.md or pack.yaml file is invalid."""

    pass


__all__ = [
    "ErrorCode",
    "EngineError",
    "MalformedDescriptorError",
    "SkillNotFoundError",
    "BudgetTooSmallForIdentityError",
    "ModeBleedError",
    "EphemeralStateError",
    "CatalogLoadError",
    "InvalidSkillError",
]
