"""
Context Module

Four-layer context model and bounded admission.

- Identity: always resident, reserved outside the budget
- Procedural / Composition: admitted by the ContextBudgetManager
- Working: per-turn scratch memory, never budget tracked
"""

from .budget import (
    AdmissionResult,
    AdmittedEntry,
    AdmittedSet,
    ContextBudgetManager,
    Eviction,
    Rejection,
)
from .layers import ContextLayer, IdentityLayer, WorkingMemory, check_preconditions
from .token_counter import (
    ApproximateTokenCounter,
    TikTokenCounter,
    TokenCounter,
    get_token_counter,
)

__all__ = [
    "AdmissionResult",
    "AdmittedEntry",
    "AdmittedSet",
    "ContextBudgetManager",
    "Eviction",
    "Rejection",
    "ContextLayer",
    "IdentityLayer",
    "WorkingMemory",
    "check_preconditions",
    "ApproximateTokenCounter",
    "TikTokenCounter",
    "TokenCounter",
    "get_token_counter",
]
