"""
Mode State Machine

Tracks the session's cognitive mode and gates action categories.

- Five modes, cyclic, no terminal state
- Any mode may move to any other, but only with an explicit reason
- authorize() is pure: it never changes the mode
- Closed world: a category not in a mode's allowed set is denied
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Union

from skill_engine.errors import ErrorCode, ModeBleedError
from skill_engine.modes.audit import TransitionAuditLog, TransitionRecord

logger = logging.getLogger(__name__)


class ModeState(str, Enum):
    """Cognitive modes."""
    EXPLORE = "explore"
    ARCHITECT = "architect"
    IMPLEMENT = "implement"
    REVIEW = "review"
    VERIFY = "verify"


class ActionCategory(str, Enum):
    """Action categories known to the authorization table."""
    READ = "read"
    SEARCH = "search"
    ASK = "ask"
    MODIFY = "modify"
    EXECUTE_BUILD = "execute-build"
    PROPOSE = "propose"
    EVALUATE = "evaluate"
    MODIFY_SOURCE = "modify-source"
    EDIT = "edit"
    BUILD_RUN = "build-run"
    INTRODUCE_DESIGN_DECISION = "introduce-new-design-decision"
    ANNOTATE_ISSUE = "annotate-issue"
    EXECUTE_TEST = "execute-test"
    REPORT = "report"
    SUPPRESS_FAILURE = "suppress-failure"


ALLOWED_ACTIONS: Dict[ModeState, FrozenSet[ActionCategory]] = {
    ModeState.EXPLORE: frozenset({ActionCategory.READ, ActionCategory.SEARCH, ActionCategory.ASK}),
    ModeState.ARCHITECT: frozenset({ActionCategory.PROPOSE, ActionCategory.EVALUATE}),
    ModeState.IMPLEMENT: frozenset({ActionCategory.EDIT, ActionCategory.BUILD_RUN}),
    ModeState.REVIEW: frozenset({ActionCategory.READ, ActionCategory.ANNOTATE_ISSUE}),
    ModeState.VERIFY: frozenset({ActionCategory.EXECUTE_TEST, ActionCategory.REPORT}),
}

# Remediation for categories no mode allows under that name.
# None means the category is never permitted.
SUGGESTED_MODES: Dict[ActionCategory, Optional[ModeState]] = {
    ActionCategory.INTRODUCE_DESIGN_DECISION: ModeState.ARCHITECT,
    ActionCategory.MODIFY: ModeState.IMPLEMENT,
    ActionCategory.MODIFY_SOURCE: ModeState.IMPLEMENT,
    ActionCategory.EXECUTE_BUILD: ModeState.IMPLEMENT,
    ActionCategory.SUPPRESS_FAILURE: None,
}

SIGNALS: Dict[ActionCategory, str] = {
    ActionCategory.INTRODUCE_DESIGN_DECISION: "NeedsArchitect",
}


@dataclass(frozen=True)
class AuthorizationResult:
    """Allowed, or Denied with the denied category and a suggested mode."""

    allowed: bool
    mode: ModeState
    category: str
    reason: str = ""
    suggested_mode: Optional[ModeState] = None
    signal: Optional[str] = None

    @property
    def denied(self) -> bool:
        return not self.allowed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "allowed": self.allowed,
            "code": None if self.allowed else ErrorCode.DENIED,
            "mode": self.mode.value,
            "category": self.category,
            "reason": self.reason,
            "suggested_mode": self.suggested_mode.value if self.suggested_mode else None,
            "signal": self.signal,
        }


def suggest_mode(category: ActionCategory) -> Optional[ModeState]:
    """Mode to switch to for a denied category, if any permits it."""
    if category in SUGGESTED_MODES:
        return SUGGESTED_MODES[category]
    for mode in ModeState:
        if category in ALLOWED_ACTIONS[mode]:
            return mode
    return None


def authorize(mode: ModeState, category: Union[ActionCategory, str]) -> AuthorizationResult:
    """Check an action category against a mode's allowed set.

    Args:
        mode: Current mode
        category: Action category (enum or its string value)

    Returns:
        AuthorizationResult (never raises for unknown categories)
    """
    mode = ModeState(mode)
    try:
        action = ActionCategory(category)
    except ValueError:
        return AuthorizationResult(
            allowed=False,
            mode=mode,
            category=str(category),
            reason=f"Unknown action category '{category}'",
        )

    if action in ALLOWED_ACTIONS[mode]:
        return AuthorizationResult(allowed=True, mode=mode, category=action.value)

    suggested = suggest_mode(action)
    if suggested is None:
        reason = f"'{action.value}' is not permitted in any mode"
    else:
        reason = f"'{action.value}' is not permitted in {mode.value} mode; switch to {suggested.value}"

    return AuthorizationResult(
        allowed=False,
        mode=mode,
        category=action.value,
        reason=reason,
        suggested_mode=suggested,
        signal=SIGNALS.get(action),
    )


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of a transition request."""

    accepted: bool
    from_mode: ModeState
    to_mode: Optional[ModeState]
    reason: str
    error: Optional[ModeBleedError] = None
    record: Optional[TransitionRecord] = None

    @property
    def mode(self) -> ModeState:
        """The mode in force after the request."""
        return self.to_mode if self.accepted else self.from_mode

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accepted": self.accepted,
            "from": self.from_mode.value,
            "to": self.to_mode.value if self.to_mode else None,
            "reason": self.reason,
            "error": self.error.to_dict() if self.error else None,
        }


def transition(
    current: ModeState,
    requested: Union[ModeState, str],
    reason: Optional[str],
) -> TransitionResult:
    """Validate a transition without applying it anywhere.

    All mode pairs are legal; the request must carry a non-empty reason.
    An unknown mode is rejected like any other invalid request.
    """
    current = ModeState(current)
    try:
        requested = ModeState(requested)
    except ValueError:
        error = ModeBleedError(
            f"Unknown mode '{requested}' requested from {current.value}",
            code=ErrorCode.UNKNOWN_MODE,
            details={"from": current.value, "to": str(requested)},
        )
        return TransitionResult(
            accepted=False,
            from_mode=current,
            to_mode=None,
            reason=reason or "",
            error=error,
        )

    if not reason or not reason.strip():
        error = ModeBleedError(
            f"Transition {current.value} -> {requested.value} has no reason",
            code=ErrorCode.UNTRACED_TRANSITION,
            details={"from": current.value, "to": requested.value},
        )
        return TransitionResult(
            accepted=False,
            from_mode=current,
            to_mode=requested,
            reason=reason or "",
            error=error,
        )

    return TransitionResult(
        accepted=True,
        from_mode=current,
        to_mode=requested,
        reason=reason.strip(),
    )


class ModeStateMachine:
    """Session-scoped mode holder with an audit trail of every transition."""

    def __init__(
        self,
        initial: ModeState = ModeState.EXPLORE,
        audit_log: Optional[TransitionAuditLog] = None,
    ):
        self._mode = ModeState(initial)
        self.audit_log = audit_log if audit_log is not None else TransitionAuditLog()

    @property
    def mode(self) -> ModeState:
        return self._mode

    def transition(self, requested: Union[ModeState, str], reason: Optional[str]) -> TransitionResult:
        """Request a mode change. Rejected requests leave the mode untouched."""
        result = transition(self._mode, requested, reason)
        if not result.accepted:
            logger.warning(f"Rejected mode transition: {result.error.message}")
            return result

        record = self.audit_log.record(result.from_mode, result.to_mode, result.reason)
        self._mode = result.to_mode
        logger.info(
            f"Mode transition {result.from_mode.value} -> {result.to_mode.value}: {result.reason}"
        )
        return TransitionResult(
            accepted=True,
            from_mode=result.from_mode,
            to_mode=result.to_mode,
            reason=result.reason,
            record=record,
        )

    def authorize(self, category: Union[ActionCategory, str]) -> AuthorizationResult:
        return authorize(self._mode, category)

    def check_assumed_mode(self, assumed: Optional[str]) -> Optional[ModeBleedError]:
        """Report mode bleed when a caller acts as if in another mode.

        Never changes the mode.
        """
        if assumed is None:
            return None
        try:
            assumed_mode = ModeState(assumed)
        except ValueError:
            return ModeBleedError(
                f"Action assumed unknown mode '{assumed}'",
                details={"current": self._mode.value, "assumed": assumed},
            )
        if assumed_mode == self._mode:
            return None

        logger.warning(
            f"Mode bleed: action assumed {assumed_mode.value} while in {self._mode.value}"
        )
        return ModeBleedError(
            f"Action assumed {assumed_mode.value} mode without a transition "
            f"(current mode is {self._mode.value})",
            details={"current": self._mode.value, "assumed": assumed_mode.value},
        )
