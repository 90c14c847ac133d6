"""
Activation Matcher for the skill context engine.

Decides which descriptors are candidates for admission on a turn. The
matcher only decides candidacy; it never loads or admits content.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from skill_engine.skills.models import (
    SPECIFICITY,
    ActivationRule,
    RuleKind,
    SkillDescriptor,
    TurnContext,
)
from skill_engine.skills.registry import SkillRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchCandidate:
    """A descriptor that satisfied one of its activation rules."""

    descriptor: SkillDescriptor
    matched_rule: ActivationRule
    specificity: int
    declaration_index: int

    @property
    def descriptor_id(self) -> str:
        return self.descriptor.id

    @property
    def rule_kind(self) -> RuleKind:
        return self.matched_rule.rule_kind

    def to_dict(self) -> Dict[str, Any]:
        return {
            "descriptor_id": self.descriptor.id,
            "rule": self.matched_rule.kind,
            "specificity": self.specificity,
            "declaration_index": self.declaration_index,
        }


class ActivationMatcher:
    """Match a turn context against the enabled part of a registry.

    Ordering: specificity descending (explicit > context > keyword), then
    registry declaration order. The same context and catalog always give
    the same sequence.
    """

    def match(
        self,
        context: TurnContext,
        registry: SkillRegistry,
        enabled_packs: Optional[Iterable[str]] = None,
    ) -> List[MatchCandidate]:
        """Return the ordered candidate sequence for a turn.

        Args:
            context: The turn's request context
            registry: Catalog to match against
            enabled_packs: Per-session override of enabled pack ids

        Returns:
            Ordered list of MatchCandidate. Empty when nothing matches,
            which is not an error.
        """
        candidates: List[MatchCandidate] = []

        for descriptor in registry.descriptors_in_enabled_packs(enabled_packs):
            rule = descriptor.first_matching_rule(context)
            if rule is None:
                continue
            candidates.append(
                MatchCandidate(
                    descriptor=descriptor,
                    matched_rule=rule,
                    specificity=SPECIFICITY[rule.rule_kind],
                    declaration_index=registry.declaration_index(descriptor.id),
                )
            )

        candidates.sort(key=lambda c: (-c.specificity, c.declaration_index))

        if candidates:
            logger.debug(
                "Matched %d candidates: %s",
                len(candidates),
                ", ".join(f"{c.descriptor_id}({c.matched_rule.kind})" for c in candidates),
            )
        return candidates


def match(
    context: TurnContext,
    registry: SkillRegistry,
    enabled_packs: Optional[Iterable[str]] = None,
) -> List[MatchCandidate]:
    """Module-level shortcut for ``ActivationMatcher().match``."""
    return ActivationMatcher().match(context, registry, enabled_packs)
