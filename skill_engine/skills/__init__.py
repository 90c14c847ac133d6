"""
Skills Module

Catalog side of the skill context engine.

Components:
- SkillRegistry: Immutable catalog of installed skill descriptors
- ActivationMatcher: Decides which descriptors are candidates for a turn
- PackLoader: Builds packs from pack.yaml + SKILL.md directories
- validate_catalog: Scope-boundary and collision lint
- SkillMessageFormatter: Renders admitted content for the Agent
"""

from skill_engine.skills.models import (
    SPECIFICITY,
    ActivationRule,
    ContextLayer,
    ContextTrigger,
    ExplicitTrigger,
    KeywordTrigger,
    Pack,
    PackManifest,
    RuleKind,
    SkillDescriptor,
    SkillFrontmatter,
    TurnContext,
)
from skill_engine.skills.registry import SkillRegistry
from skill_engine.skills.matcher import ActivationMatcher, MatchCandidate, match
from skill_engine.skills.loader import PackLoader, load_registry
from skill_engine.skills.validator import LintIssue, validate_catalog, validate_pack
from skill_engine.skills.formatter import SkillMessageFormatter

__all__ = [
    # Models
    "SPECIFICITY",
    "ActivationRule",
    "ContextLayer",
    "ContextTrigger",
    "ExplicitTrigger",
    "KeywordTrigger",
    "Pack",
    "PackManifest",
    "RuleKind",
    "SkillDescriptor",
    "SkillFrontmatter",
    "TurnContext",
    # Core components
    "SkillRegistry",
    "ActivationMatcher",
    "MatchCandidate",
    "match",
    "PackLoader",
    "load_registry",
    "LintIssue",
    "validate_catalog",
    "validate_pack",
    "SkillMessageFormatter",
]
