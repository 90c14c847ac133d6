"""
Turn Decision

The per-turn output of a SkillSession: what is resident, what changed,
the current mode, the authorization verdict and every notice raised.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from skill_engine.context.budget import Eviction, Rejection
from skill_engine.errors import EngineError
from skill_engine.modes.state_machine import AuthorizationResult, ModeState
from skill_engine.modes.verification import VerificationReport
from skill_engine.skills.matcher import MatchCandidate
from skill_engine.skills.models import ContextLayer


@dataclass(frozen=True)
class AdmittedContent:
    """A resident descriptor with its body, ready for rendering."""

    descriptor_id: str
    layer: ContextLayer
    weight: int
    description: str
    body: str
    references: tuple = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "descriptor_id": self.descriptor_id,
            "layer": self.layer.value,
            "weight": self.weight,
            "description": self.description,
            "body": self.body,
            "references": list(self.references),
        }


@dataclass
class Decision:
    session_id: str
    turn: int
    mode: ModeState
    identity: str
    admitted_content: List[AdmittedContent] = field(default_factory=list)
    candidates: List[MatchCandidate] = field(default_factory=list)
    newly_admitted: List[str] = field(default_factory=list)
    refreshed: List[str] = field(default_factory=list)
    evicted: List[Eviction] = field(default_factory=list)
    rejected: List[Rejection] = field(default_factory=list)
    authorization: Optional[AuthorizationResult] = None
    notices: List[EngineError] = field(default_factory=list)
    report: Optional[VerificationReport] = None
    total_weight: int = 0
    budget: int = 0

    @property
    def proceed(self) -> bool:
        """Whether the turn's action may be executed by the host."""
        return self.authorization is None or self.authorization.allowed

    @property
    def admitted_ids(self) -> List[str]:
        return [content.descriptor_id for content in self.admitted_content]

    def notices_with_code(self, code: str) -> List[EngineError]:
        return [notice for notice in self.notices if notice.code == code]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "turn": self.turn,
            "mode": self.mode.value,
            "proceed": self.proceed,
            "identity": self.identity,
            "admitted": [content.to_dict() for content in self.admitted_content],
            "candidates": [candidate.to_dict() for candidate in self.candidates],
            "newly_admitted": list(self.newly_admitted),
            "refreshed": list(self.refreshed),
            "evicted": [eviction.to_dict() for eviction in self.evicted],
            "rejected": [rejection.to_dict() for rejection in self.rejected],
            "authorization": self.authorization.to_dict() if self.authorization else None,
            "notices": [notice.to_dict() for notice in self.notices],
            "report": self.report.to_dict() if self.report else None,
            "total_weight": self.total_weight,
            "budget": self.budget,
        }
