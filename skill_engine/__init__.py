"""
Skill Context Engine

Decides which skills (procedural-knowledge modules grouped into packs) are
relevant for a turn, admits them under a bounded context budget, and gates
actions by the session's cognitive mode.

Layers:
- Identity (always resident, reserved outside the budget)
- Procedural (admitted skill bodies)
- Composition (recipes referencing procedural skills)
- Working (per-turn scratch memory)
"""

from skill_engine.errors import (
    BudgetTooSmallForIdentityError,
    EngineError,
    ErrorCode,
    MalformedDescriptorError,
    ModeBleedError,
    SkillNotFoundError,
)
from skill_engine.skills import (
    ActivationMatcher,
    ContextTrigger,
    ExplicitTrigger,
    KeywordTrigger,
    Pack,
    PackLoader,
    SkillDescriptor,
    SkillRegistry,
    TurnContext,
    load_registry,
)
from skill_engine.context import AdmittedSet, ContextBudgetManager, IdentityLayer
from skill_engine.modes import ActionCategory, ModeState, ModeStateMachine, authorize, transition
from skill_engine.session import Decision, SkillSession

__version__ = "0.1.0"

__all__ = [
    "BudgetTooSmallForIdentityError",
    "EngineError",
    "ErrorCode",
    "MalformedDescriptorError",
    "ModeBleedError",
    "SkillNotFoundError",
    "ActivationMatcher",
    "ContextTrigger",
    "ExplicitTrigger",
    "KeywordTrigger",
    "Pack",
    "PackLoader",
    "SkillDescriptor",
    "SkillRegistry",
    "TurnContext",
    "load_registry",
    "AdmittedSet",
    "ContextBudgetManager",
    "IdentityLayer",
    "ActionCategory",
    "ModeState",
    "ModeStateMachine",
    "authorize",
    "transition",
    "Decision",
    "SkillSession",
]
