"""Pack and catalog validation (lint) utilities.

Lint never raises and never affects runtime matching; it only reports.
"""

import logging
import re
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from skill_engine.skills.models import ContextLayer, KeywordTrigger, Pack

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LintIssue:
    """One validation finding."""

    severity: str  # "error" or "warning"
    code: str
    message: str
    pack_id: str
    descriptor_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return asdict(self)


def _mentions(text: str, term: str) -> bool:
    pattern = r"(?<!\w)" + re.escape(term.lower()) + r"(?!\w)"
    return re.search(pattern, text.lower()) is not None


def validate_pack(pack: Pack) -> List[LintIssue]:
    """Validate a single pack against its declared scope boundary.

    Args:
        pack: The pack to lint

    Returns:
        List of issues. Empty list means clean.
    """
    issues: List[LintIssue] = []

    if not pack.descriptors:
        issues.append(LintIssue("warning", "EMPTY_PACK", "Pack declares no skills", pack.id))

    for descriptor in pack.descriptors:
        if not descriptor.body.strip():
            issues.append(LintIssue(
                "warning",
                "EMPTY_BODY",
                "Skill body is empty - add instructions",
                pack.id,
                descriptor.id,
            ))

        if descriptor.is_composition and not descriptor.references:
            issues.append(LintIssue(
                "warning",
                "EMPTY_RECIPE",
                "Composition skill references no procedural skills",
                pack.id,
                descriptor.id,
            ))

        if descriptor.layer == ContextLayer.PROCEDURAL and descriptor.references:
            issues.append(LintIssue(
                "error",
                "REFERENCES_ON_PROCEDURAL",
                "Only composition skills may reference other skills",
                pack.id,
                descriptor.id,
            ))

        for term in pack.scope_boundary:
            phrases = [
                phrase
                for rule in descriptor.rules
                if isinstance(rule, KeywordTrigger)
                for phrase in rule.phrases
            ]
            if any(_mentions(phrase, term) for phrase in phrases):
                issues.append(LintIssue(
                    "error",
                    "TRIGGER_OUTSIDE_SCOPE",
                    f"Keyword trigger mentions excluded topic '{term}'",
                    pack.id,
                    descriptor.id,
                ))
            elif _mentions(descriptor.description, term):
                issues.append(LintIssue(
                    "warning",
                    "DESCRIPTION_OUTSIDE_SCOPE",
                    f"Description mentions excluded topic '{term}'",
                    pack.id,
                    descriptor.id,
                ))

    return issues


def find_keyword_collisions(packs: Sequence[Pack]) -> List[LintIssue]:
    """Report keyword phrases claimed by skills of more than one pack.

    Collisions are resolved at runtime by registry declaration order only.
    """
    owners: Dict[str, List[Tuple[str, str]]] = {}
    for pack in packs:
        for descriptor in pack.descriptors:
            for rule in descriptor.rules:
                if not isinstance(rule, KeywordTrigger):
                    continue
                for phrase in rule.phrases:
                    owners.setdefault(phrase.lower(), []).append((pack.id, descriptor.id))

    issues: List[LintIssue] = []
    for phrase, claimants in owners.items():
        pack_ids = sorted({pack_id for pack_id, _ in claimants})
        if len(pack_ids) < 2:
            continue
        descriptor_ids = ", ".join(descriptor_id for _, descriptor_id in claimants)
        issues.append(LintIssue(
            "warning",
            "KEYWORD_COLLISION",
            f"Keyword '{phrase}' triggers skills in packs {', '.join(pack_ids)} ({descriptor_ids}); "
            f"declaration order decides",
            pack_ids[0],
        ))
    return issues


def validate_catalog(packs: Sequence[Pack]) -> List[LintIssue]:
    """Lint every pack and the catalog as a whole."""
    issues: List[LintIssue] = []
    for pack in packs:
        issues.extend(validate_pack(pack))
    issues.extend(find_keyword_collisions(packs))

    for issue in issues:
        logger.warning(f"[{issue.code}] {issue.pack_id}: {issue.message}")
    return issues
