"""
Unit tests for SkillSession.

Tests the full turn pipeline: match -> admit -> authorize -> Decision.
"""

import json

import pytest

from config import Config
from skill_engine.context.budget import ContextBudgetManager
from skill_engine.context.layers import IdentityLayer
from skill_engine.errors import BudgetTooSmallForIdentityError, ErrorCode
from skill_engine.modes.state_machine import ModeState
from skill_engine.session.controller import SkillSession
from skill_engine.skills.models import ContextLayer, ExplicitTrigger, KeywordTrigger


@pytest.fixture
def registry(make_descriptor, make_registry):
    return make_registry(
        make_descriptor(
            "mapping/terrain",
            weight=10,
            rules=[ExplicitTrigger(token="/terrain"), KeywordTrigger(phrases=("terrain",))],
            guarantees=("terrain_map",),
        ),
        make_descriptor("mapping/routes", weight=20, preconditions=("terrain_map",)),
        make_descriptor("mapping/schema", weight=15, preconditions=("db_url",)),
        make_descriptor(
            "mapping/survey",
            weight=999,
            layer=ContextLayer.COMPOSITION,
            references=("mapping/terrain", "mapping/routes"),
        ),
        make_descriptor("review/checklist", weight=5),
    )


@pytest.fixture
def session(registry):
    manager = ContextBudgetManager(budget=60, identity_overhead=10, composition_weight=5)
    identity = IdentityLayer(content="Mapping service.", facts={"repo": "mapping"}, overhead=10)
    return SkillSession(registry, manager, identity=identity, session_id="test")


class TestHandle:
    """Test single turns."""

    def test_no_match_turn(self, session):
        decision = session.handle({"text": "hello"})

        assert decision.turn == 1
        assert decision.mode == ModeState.EXPLORE
        assert decision.admitted_content == []
        assert decision.candidates == []
        assert decision.proceed
        assert decision.identity == "Mapping service."
        assert decision.budget == 50

    def test_admits_and_reports_content(self, session):
        decision = session.handle({"text": "terrain"})

        assert decision.newly_admitted == ["mapping/terrain"]
        assert decision.admitted_ids == ["mapping/terrain"]
        assert decision.admitted_content[0].body == "Instructions for terrain."
        assert decision.total_weight == 10

    def test_resident_content_persists_across_turns(self, session):
        session.handle({"text": "terrain"})
        decision = session.handle({"text": "checklist"})

        assert decision.newly_admitted == ["review/checklist"]
        assert set(decision.admitted_ids) == {"mapping/terrain", "review/checklist"}
        assert session.turn == 2

    def test_recipe_uses_composition_weight(self, session):
        decision = session.handle({"text": "survey"})
        recipe = decision.admitted_content[0]
        assert recipe.layer == ContextLayer.COMPOSITION
        assert recipe.weight == 5
        assert recipe.references == ("mapping/terrain", "mapping/routes")

    def test_budget_never_exceeded(self, session):
        for text in ["terrain routes", "schema checklist survey", "routes schema", "terrain"] * 10:
            decision = session.handle({"text": text})
            assert decision.total_weight <= decision.budget

    def test_decision_to_dict_is_json(self, session):
        decision = session.handle({"text": "terrain", "action": "read"})
        data = json.loads(json.dumps(decision.to_dict()))
        assert data["mode"] == "explore"
        assert data["authorization"]["allowed"] is True


class TestAuthorization:
    """Test action gating through the session."""

    def test_denied_action(self, session):
        session.transition(ModeState.IMPLEMENT, "plan agreed")
        decision = session.handle(
            {"text": "terrain", "action": "introduce-new-design-decision"}
        )

        assert not decision.proceed
        assert decision.authorization.suggested_mode == ModeState.ARCHITECT
        assert decision.authorization.signal == "NeedsArchitect"
        assert decision.mode == ModeState.IMPLEMENT
        # Admission still happens on a denied turn
        assert decision.admitted_ids == ["mapping/terrain"]

    def test_mode_changes_only_by_transition(self, session):
        for action in ["modify", "edit", "propose", "execute-test"]:
            session.handle({"text": "x", "action": action})
        assert session.mode == ModeState.EXPLORE

    def test_untraced_transition(self, session):
        result = session.transition(ModeState.VERIFY, "")
        assert not result.accepted
        assert result.error.code == ErrorCode.UNTRACED_TRANSITION
        assert session.mode == ModeState.EXPLORE

    def test_mode_bleed_notice(self, session):
        decision = session.handle({"text": "x", "action": "read", "assumed_mode": "implement"})
        assert [n.code for n in decision.notices] == [ErrorCode.MODE_BLEED]
        assert session.mode == ModeState.EXPLORE

    def test_verify_report(self, session):
        session.transition("verify", "implementation complete")
        decision = session.handle(
            {
                "text": "x",
                "action": "execute-test",
                "check_results": {"unit": True, "integration": False},
            }
        )
        assert decision.proceed
        assert decision.report.status == "failed"
        assert [o.name for o in decision.report.failed] == ["integration"]

    def test_no_report_outside_verify(self, session):
        decision = session.handle({"text": "x", "action": "read", "check_results": {"unit": True}})
        assert decision.report is None

    def test_denied_action_keeps_check_results(self, session):
        session.transition("verify", "implementation complete")
        decision = session.handle(
            {"text": "x", "action": "suppress-failure", "check_results": {"unit": False}}
        )

        assert not decision.proceed
        assert decision.report.status == "failed"
        assert [o.name for o in decision.report.failed] == ["unit"]
        assert decision.to_dict()["report"]["failed"] == 1

    def test_results_without_action_reported(self, session):
        session.transition("verify", "implementation complete")
        decision = session.handle({"text": "x", "check_results": {"unit": True}})
        assert decision.report.status == "passed"

    def test_missing_expected_check_incomplete(self, session):
        session.transition("verify", "implementation complete")
        decision = session.handle(
            {
                "text": "x",
                "action": "execute-test",
                "expected_checks": ["unit", "integration"],
                "check_results": {"unit": True},
            }
        )
        assert decision.report.status == "incomplete"
        assert decision.report.missing == ["integration"]


class TestPreconditions:
    """Test durable-state checks on admitted skills."""

    def test_guarantee_of_resident_skill(self, session):
        session.handle({"text": "terrain"})
        decision = session.handle({"text": "routes"})
        assert decision.notices == []

    def test_unmet(self, session):
        decision = session.handle({"text": "routes"})
        assert [n.code for n in decision.notices] == [ErrorCode.UNMET_PRECONDITION]

    def test_working_memory_only(self, session):
        decision = session.handle({"text": "schema", "working": {"db_url": "sqlite://"}})
        notices = decision.notices_with_code(ErrorCode.EPHEMERAL_DEPENDENCY)
        assert len(notices) == 1
        assert notices[0].details["key"] == "db_url"

    def test_session_fact_is_durable(self, session):
        session.handle({"text": "x", "facts": {"db_url": "sqlite://"}})
        decision = session.handle({"text": "schema"})
        assert decision.notices == []


class TestFromConfig:
    """Test building a session from configuration."""

    def test_from_config(self, registry, tmp_path):
        config = Config(
            identity="Mapping service.",
            budget={"budget": 100, "identity_overhead": 20, "composition_weight": 4},
            catalog={"enabled_packs": ["mapping"]},
            audit={"file": str(tmp_path / "audit.jsonl")},
        )
        session = SkillSession.from_config(registry, config, session_id="cfg")

        assert session.budget_manager.available == 80
        decision = session.handle({"text": "checklist terrain"})
        assert decision.admitted_ids == ["mapping/terrain"]

        session.transition("review", "ready for review")
        assert (tmp_path / "audit.jsonl").exists()

    def test_identity_too_large(self, registry):
        config = Config(budget={"budget": 100, "identity_overhead": 101})
        with pytest.raises(BudgetTooSmallForIdentityError):
            SkillSession.from_config(registry, config)

    def test_sessions_are_independent(self, registry):
        config = Config(budget={"budget": 100, "identity_overhead": 0})
        first = SkillSession.from_config(registry, config)
        second = SkillSession.from_config(registry, config)

        first.handle({"text": "terrain"})
        first.transition("architect", "design time")

        assert second.admitted_set.total_weight == 0
        assert second.mode == ModeState.EXPLORE
        assert first.session_id != second.session_id
