"""
Modes Module

Cognitive mode state machine, action authorization, transition audit and
Verify-mode reporting.
"""

from .audit import TransitionAuditLog, TransitionRecord
from .state_machine import (
    ALLOWED_ACTIONS,
    ActionCategory,
    AuthorizationResult,
    ModeState,
    ModeStateMachine,
    TransitionResult,
    authorize,
    suggest_mode,
    transition,
)
from .verification import CheckOutcome, VerificationReport

__all__ = [
    "TransitionAuditLog",
    "TransitionRecord",
    "ALLOWED_ACTIONS",
    "ActionCategory",
    "AuthorizationResult",
    "ModeState",
    "ModeStateMachine",
    "TransitionResult",
    "authorize",
    "suggest_mode",
    "transition",
    "CheckOutcome",
    "VerificationReport",
]
