"""
Session Controller

Runs one turn at a time: match -> admit -> authorize -> Decision.

Each session owns its AdmittedSet and mode; the registry is shared and
read-only. The controller never switches modes on its own and never
executes the turn's action, it only says whether the host may.
"""

import logging
import uuid
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from config import Config
from skill_engine.context.budget import AdmittedEntry, AdmittedSet, ContextBudgetManager
from skill_engine.context.layers import IdentityLayer, WorkingMemory, check_preconditions
from skill_engine.errors import EngineError
from skill_engine.modes.audit import TransitionAuditLog
from skill_engine.modes.state_machine import (
    ModeState,
    ModeStateMachine,
    TransitionResult,
)
from skill_engine.modes.verification import VerificationReport
from skill_engine.session.decision import AdmittedContent, Decision
from skill_engine.skills.matcher import ActivationMatcher
from skill_engine.skills.models import TurnContext
from skill_engine.skills.registry import SkillRegistry

logger = logging.getLogger(__name__)


class SkillSession:
    """One working session over a shared SkillRegistry.

    Turns must be handled strictly one at a time; concurrent sessions need
    no coordination because nothing mutable is shared between them.
    """

    def __init__(
        self,
        registry: SkillRegistry,
        budget_manager: ContextBudgetManager,
        identity: Optional[IdentityLayer] = None,
        enabled_packs: Optional[Iterable[str]] = None,
        session_id: Optional[str] = None,
        matcher: Optional[ActivationMatcher] = None,
        audit_log: Optional[TransitionAuditLog] = None,
    ):
        """
        Initialize a session.

        Args:
            registry: Shared, read-only skill catalog
            budget_manager: Budget manager (already validated against identity overhead)
            identity: Always-resident project identity
            enabled_packs: Pack ids enabled for this session; None uses pack flags
            session_id: Identifier used in decisions and logs
            matcher: Activation matcher (default ActivationMatcher)
            audit_log: Transition audit log (in-memory by default)
        """
        self.registry = registry
        self.budget_manager = budget_manager
        self.identity = identity or IdentityLayer(overhead=budget_manager.identity_overhead)
        self.enabled_packs = list(enabled_packs) if enabled_packs is not None else None
        self.session_id = session_id or uuid.uuid4().hex[:12]
        self.matcher = matcher or ActivationMatcher()
        self.modes = ModeStateMachine(audit_log=audit_log)
        self.admitted_set = AdmittedSet()
        self.facts: Dict[str, Any] = {}

    @classmethod
    def from_config(
        cls,
        registry: SkillRegistry,
        config: Config,
        session_id: Optional[str] = None,
        identity_facts: Optional[Mapping[str, Any]] = None,
    ) -> "SkillSession":
        """Build a session from configuration.

        Raises:
            BudgetTooSmallForIdentityError: If the identity overhead does not
                fit the configured budget; the session is not created
        """
        budget_config = config.budget
        manager = ContextBudgetManager(
            budget=budget_config.budget,
            identity_overhead=budget_config.identity_overhead,
            recency_floor_turns=budget_config.recency_floor_turns,
            composition_weight=budget_config.composition_weight,
        )
        identity = IdentityLayer(
            content=config.identity,
            facts=dict(identity_facts or {}),
            overhead=budget_config.identity_overhead,
        )
        return cls(
            registry=registry,
            budget_manager=manager,
            identity=identity,
            enabled_packs=config.catalog.enabled_packs,
            session_id=session_id,
            audit_log=TransitionAuditLog(path=config.audit.file),
        )

    @property
    def mode(self) -> ModeState:
        return self.modes.mode

    @property
    def turn(self) -> int:
        return self.admitted_set.turn

    def transition(self, requested: Union[ModeState, str], reason: Optional[str]) -> TransitionResult:
        """Explicit, logged mode change. The only way the mode changes."""
        return self.modes.transition(requested, reason)

    def handle(self, context: Union[TurnContext, Mapping[str, Any]]) -> Decision:
        """
        Process one turn.

        Args:
            context: TurnContext or a dict of its fields

        Returns:
            Decision for the turn
        """
        if not isinstance(context, TurnContext):
            context = TurnContext(**context)

        candidates = self.matcher.match(context, self.registry, self.enabled_packs)
        admission = self.budget_manager.admit(candidates, self.admitted_set)
        new_set = admission.admitted_set

        notices: List[EngineError] = []
        bleed = self.modes.check_assumed_mode(context.assumed_mode)
        if bleed is not None:
            notices.append(bleed)

        facts = dict(self.facts)
        facts.update(context.facts)

        working = WorkingMemory(context.working)
        durable_keys = set(self.identity.facts) | set(facts)
        for entry in new_set:
            durable_keys.update(self.registry.lookup(entry.descriptor_id).guarantees)
        used = [self.registry.lookup(i) for i in admission.admitted + admission.refreshed]
        notices.extend(check_preconditions(used, durable_keys=durable_keys, working=working))

        authorization = None
        report = None
        if context.action is not None:
            authorization = self.modes.authorize(context.action)
            if authorization.denied:
                logger.info(f"[{self.session_id}] Denied '{context.action}': {authorization.reason}")

        # Check outcomes reach the Decision whether or not the action was allowed.
        if self.mode == ModeState.VERIFY and (context.check_results or context.expected_checks):
            report = VerificationReport.from_results(
                context.check_results, expected=context.expected_checks
            )

        admitted_content = [self._content_for(entry) for entry in new_set]

        decision = Decision(
            session_id=self.session_id,
            turn=admission.turn,
            mode=self.mode,
            identity=self.identity.content,
            admitted_content=admitted_content,
            candidates=list(candidates),
            newly_admitted=list(admission.admitted),
            refreshed=list(admission.refreshed),
            evicted=list(admission.evicted),
            rejected=list(admission.rejected),
            authorization=authorization,
            notices=notices,
            report=report,
            total_weight=new_set.total_weight,
            budget=self.budget_manager.available,
        )

        # Commit only once the whole turn has been computed.
        self.admitted_set = new_set
        self.facts = facts
        working.clear()

        logger.debug(
            f"[{self.session_id}] turn {decision.turn}: mode={decision.mode.value} "
            f"resident={decision.admitted_ids} proceed={decision.proceed}"
        )
        return decision

    def _content_for(self, entry: AdmittedEntry) -> AdmittedContent:
        descriptor = self.registry.lookup(entry.descriptor_id)
        return AdmittedContent(
            descriptor_id=descriptor.id,
            layer=descriptor.layer,
            weight=entry.weight,
            description=descriptor.description,
            body=descriptor.body,
            references=descriptor.references,
        )
