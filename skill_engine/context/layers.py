"""
Context layers outside the budget: Identity and Working.

Identity is small, stable and always resident. Working memory lives for a
single turn and must never be the only source of state a decision needs.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional

from skill_engine.errors import EngineError, EphemeralStateError, ErrorCode
from skill_engine.skills.models import ContextLayer, SkillDescriptor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdentityLayer:
    """Stable project identity. Never evicted, never counted in the budget."""

    content: str = ""
    facts: Mapping[str, Any] = field(default_factory=dict)
    overhead: int = 0

    layer = ContextLayer.IDENTITY


class WorkingMemory:
    """Ephemeral per-turn memory. Not budget tracked; cleared at turn end."""

    layer = ContextLayer.WORKING

    def __init__(self, values: Optional[Mapping[str, Any]] = None):
        self._values: Dict[str, Any] = dict(values or {})

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value

    def clear(self) -> None:
        self._values.clear()


def check_preconditions(
    descriptors: Iterable[SkillDescriptor],
    durable_keys: Iterable[str],
    working: WorkingMemory,
) -> List[EngineError]:
    """Check declared preconditions of admitted descriptors.

    A precondition is durable when it is a session/identity fact or a
    guarantee of some admitted descriptor. One backed only by working memory
    is a design violation and is flagged; one backed by nothing is unmet.

    Args:
        descriptors: Descriptors resident after admission
        durable_keys: Fact keys from identity and session facts
        working: This turn's working memory

    Returns:
        Notices (EphemeralStateError or UNMET_PRECONDITION errors)
    """
    descriptors = list(descriptors)
    durable = set(durable_keys)
    for descriptor in descriptors:
        durable.update(descriptor.guarantees)

    notices: List[EngineError] = []
    for descriptor in descriptors:
        for key in descriptor.preconditions:
            if key in durable:
                continue
            if key in working:
                logger.warning(
                    f"Skill '{descriptor.id}' depends on '{key}' which only exists in working memory"
                )
                notices.append(EphemeralStateError(key, descriptor_id=descriptor.id))
            else:
                notices.append(EngineError(
                    message=f"Precondition '{key}' of '{descriptor.id}' is not satisfied",
                    code=ErrorCode.UNMET_PRECONDITION,
                    details={"key": key, "descriptor_id": descriptor.id},
                ))
    return notices


__all__ = [
    "ContextLayer",
    "IdentityLayer",
    "WorkingMemory",
    "check_preconditions",
]
