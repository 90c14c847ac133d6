"""
Context Budget Manager

Admits matched skills into the session context without ever exceeding the
configured budget.

- Already admitted candidates are refreshed (no weight change)
- New candidates are tried in specificity, then recency, then declaration order
- Eviction is least-recently-used with a recency floor
- Composition entries are retained in preference to procedural ones
- A candidate that cannot fit is rejected; the budget is never broken
"""

import logging
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from skill_engine.errors import BudgetTooSmallForIdentityError, ErrorCode
from skill_engine.skills.matcher import MatchCandidate
from skill_engine.skills.models import ContextLayer, SkillDescriptor

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class AdmittedEntry:
    """Bookkeeping for one resident descriptor."""

    descriptor_id: str
    layer: ContextLayer
    weight: int
    admitted_turn: int
    last_used_turn: int
    admitted_at: datetime
    last_used_at: datetime
    use_count: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "descriptor_id": self.descriptor_id,
            "layer": self.layer.value,
            "weight": self.weight,
            "admitted_turn": self.admitted_turn,
            "last_used_turn": self.last_used_turn,
            "use_count": self.use_count,
            "admitted_at": self.admitted_at.isoformat(),
            "last_used_at": self.last_used_at.isoformat(),
        }


class AdmittedSet:
    """Per-session resident set: descriptor id -> AdmittedEntry.

    Also remembers the last turn each id was used in, even after eviction,
    so readmission can prefer recently useful skills.
    """

    def __init__(
        self,
        entries: Optional[Dict[str, AdmittedEntry]] = None,
        turn: int = 0,
        history: Optional[Dict[str, int]] = None,
    ):
        self.entries: Dict[str, AdmittedEntry] = dict(entries or {})
        self.turn = turn
        self.history: Dict[str, int] = dict(history or {})

    def __contains__(self, descriptor_id: object) -> bool:
        return descriptor_id in self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[AdmittedEntry]:
        return iter(self.entries.values())

    @property
    def total_weight(self) -> int:
        return sum(entry.weight for entry in self.entries.values())

    def ids(self) -> List[str]:
        return list(self.entries.keys())

    def get(self, descriptor_id: str) -> Optional[AdmittedEntry]:
        return self.entries.get(descriptor_id)

    def weight_by_layer(self) -> Dict[str, int]:
        totals: Dict[str, int] = {}
        for entry in self.entries.values():
            totals[entry.layer.value] = totals.get(entry.layer.value, 0) + entry.weight
        return totals

    def copy(self) -> "AdmittedSet":
        return AdmittedSet(
            entries={k: replace(v) for k, v in self.entries.items()},
            turn=self.turn,
            history=self.history,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "turn": self.turn,
            "total_weight": self.total_weight,
            "entries": [entry.to_dict() for entry in self.entries.values()],
        }


@dataclass(frozen=True)
class Eviction:
    descriptor_id: str
    layer: ContextLayer
    weight: int
    last_used_turn: int
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["layer"] = self.layer.value
        return data


@dataclass(frozen=True)
class Rejection:
    """A candidate that was not admitted this turn."""

    descriptor_id: str
    weight: int
    reason: str
    code: str = ErrorCode.REJECTED

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class AdmissionResult:
    admitted_set: AdmittedSet
    turn: int
    admitted: List[str] = field(default_factory=list)
    refreshed: List[str] = field(default_factory=list)
    evicted: List[Eviction] = field(default_factory=list)
    rejected: List[Rejection] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "turn": self.turn,
            "admitted": list(self.admitted),
            "refreshed": list(self.refreshed),
            "evicted": [e.to_dict() for e in self.evicted],
            "rejected": [r.to_dict() for r in self.rejected],
            "total_weight": self.admitted_set.total_weight,
        }


class ContextBudgetManager:
    """
    Bounded admission of Procedural and Composition content.

    The Identity overhead is reserved from the budget up front; admitted
    content may use what is left. After every ``admit`` call the resident
    weight is at most ``budget - identity_overhead``.
    """

    def __init__(
        self,
        budget: int,
        identity_overhead: int = 0,
        recency_floor_turns: int = 1,
        composition_weight: int = 1,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the budget manager.

        Args:
            budget: Total weight units available for context
            identity_overhead: Fixed weight reserved for the Identity layer
            recency_floor_turns: Entries admitted within this many previous
                turns are never evicted
            composition_weight: Fixed weight charged for a recipe entry
            clock: Timestamp source (UTC now by default)

        Raises:
            BudgetTooSmallForIdentityError: If identity_overhead > budget
        """
        if budget <= 0:
            raise ValueError(f"Budget must be positive, got {budget}")
        if identity_overhead < 0:
            raise ValueError(f"Identity overhead cannot be negative, got {identity_overhead}")
        if recency_floor_turns < 0:
            raise ValueError("recency_floor_turns cannot be negative")
        if composition_weight <= 0:
            raise ValueError("composition_weight must be positive")
        if identity_overhead > budget:
            raise BudgetTooSmallForIdentityError(budget, identity_overhead)

        self.budget = budget
        self.identity_overhead = identity_overhead
        self.recency_floor_turns = recency_floor_turns
        self.composition_weight = composition_weight
        self._clock = clock or _utcnow

    @property
    def available(self) -> int:
        """Weight available for admitted content."""
        return self.budget - self.identity_overhead

    def weight_of(self, descriptor: SkillDescriptor) -> int:
        if descriptor.is_composition:
            return self.composition_weight
        return descriptor.weight

    def _effective_budget(self, budget: Optional[int]) -> int:
        if budget is None:
            return self.available
        if budget < self.identity_overhead:
            raise BudgetTooSmallForIdentityError(budget, self.identity_overhead)
        return budget - self.identity_overhead

    def is_protected(self, entry: AdmittedEntry, turn: int) -> bool:
        """Recency floor: recently admitted entries are not eviction victims."""
        return entry.admitted_turn >= turn - self.recency_floor_turns

    @staticmethod
    def _victim_key(entry: AdmittedEntry, order: int) -> Tuple[bool, int, datetime, int]:
        # Procedural before composition, then least recently used, then oldest.
        return (
            entry.layer == ContextLayer.COMPOSITION,
            entry.last_used_turn,
            entry.last_used_at,
            order,
        )

    def _eviction_order(self, working: AdmittedSet) -> List[AdmittedEntry]:
        indexed = list(enumerate(working.entries.values()))
        indexed.sort(key=lambda pair: self._victim_key(pair[1], pair[0]))
        return [entry for _, entry in indexed]

    def _order_new(
        self,
        candidates: Sequence[MatchCandidate],
        history: Dict[str, int],
    ) -> List[MatchCandidate]:
        return sorted(
            candidates,
            key=lambda c: (
                -c.specificity,
                -history.get(c.descriptor_id, -1),
                c.declaration_index,
            ),
        )

    def admit(
        self,
        candidates: Sequence[MatchCandidate],
        admitted_set: AdmittedSet,
        budget: Optional[int] = None,
    ) -> AdmissionResult:
        """
        Run one turn of admission.

        The input set is not modified; a new AdmittedSet is returned so a
        failure part way through never leaves a half-applied state.

        Args:
            candidates: Ordered match candidates for this turn
            admitted_set: Current resident set
            budget: Optional override of the total budget for this turn

        Returns:
            AdmissionResult with the new set, admitted, refreshed, evicted
            and rejected ids
        """
        limit = self._effective_budget(budget)
        now = self._clock()
        working = admitted_set.copy()
        working.turn = admitted_set.turn + 1
        turn = working.turn

        result = AdmissionResult(admitted_set=working, turn=turn)
        candidate_ids = {c.descriptor_id for c in candidates}

        if working.total_weight > limit:
            self._shrink(working, limit, result)

        # Already resident: refresh only
        new_candidates: List[MatchCandidate] = []
        seen = set()
        for candidate in candidates:
            if candidate.descriptor_id in seen:
                continue
            seen.add(candidate.descriptor_id)
            entry = working.entries.get(candidate.descriptor_id)
            if entry is not None:
                entry.last_used_turn = turn
                entry.last_used_at = now
                entry.use_count += 1
                working.history[entry.descriptor_id] = turn
                result.refreshed.append(entry.descriptor_id)
            else:
                new_candidates.append(candidate)

        for candidate in self._order_new(new_candidates, admitted_set.history):
            descriptor = candidate.descriptor
            weight = self.weight_of(descriptor)

            if weight > limit:
                self._reject(result, descriptor.id, weight, f"weight {weight} exceeds budget {limit}")
                continue

            need = working.total_weight + weight - limit
            if need > 0:
                victims = self._select_victims(working, need, candidate_ids, turn)
                if victims is None:
                    self._reject(
                        result,
                        descriptor.id,
                        weight,
                        f"needs {need} more weight and no eligible entries can free it",
                    )
                    continue
                for victim in victims:
                    self._evict(working, victim, f"evicted to admit {descriptor.id}", result)

            working.entries[descriptor.id] = AdmittedEntry(
                descriptor_id=descriptor.id,
                layer=descriptor.layer,
                weight=weight,
                admitted_turn=turn,
                last_used_turn=turn,
                admitted_at=now,
                last_used_at=now,
            )
            working.history[descriptor.id] = turn
            result.admitted.append(descriptor.id)

        logger.debug(
            f"Turn {turn}: admitted={result.admitted} refreshed={result.refreshed} "
            f"evicted={[e.descriptor_id for e in result.evicted]} "
            f"rejected={[r.descriptor_id for r in result.rejected]} "
            f"total={working.total_weight}/{limit}"
        )
        return result

    def _select_victims(
        self,
        working: AdmittedSet,
        need: int,
        candidate_ids: set,
        turn: int,
    ) -> Optional[List[AdmittedEntry]]:
        """Pick victims freeing at least ``need`` weight, or None if impossible."""
        victims: List[AdmittedEntry] = []
        freed = 0
        for entry in self._eviction_order(working):
            if entry.descriptor_id in candidate_ids or self.is_protected(entry, turn):
                continue
            victims.append(entry)
            freed += entry.weight
            if freed >= need:
                return victims
        return None

    def _shrink(self, working: AdmittedSet, limit: int, result: AdmissionResult) -> None:
        # Only reachable when a smaller budget override is passed in; the
        # invariant outranks the recency floor here.
        for entry in self._eviction_order(working):
            if working.total_weight <= limit:
                break
            self._evict(working, entry, "budget reduced", result)

    @staticmethod
    def _evict(
        working: AdmittedSet,
        entry: AdmittedEntry,
        reason: str,
        result: AdmissionResult,
    ) -> None:
        del working.entries[entry.descriptor_id]
        result.evicted.append(
            Eviction(
                descriptor_id=entry.descriptor_id,
                layer=entry.layer,
                weight=entry.weight,
                last_used_turn=entry.last_used_turn,
                reason=reason,
            )
        )
        logger.info(f"Evicted '{entry.descriptor_id}' (weight {entry.weight}): {reason}")

    @staticmethod
    def _reject(result: AdmissionResult, descriptor_id: str, weight: int, reason: str) -> None:
        result.rejected.append(Rejection(descriptor_id=descriptor_id, weight=weight, reason=reason))
        logger.info(f"Rejected '{descriptor_id}' (weight {weight}): {reason}")
