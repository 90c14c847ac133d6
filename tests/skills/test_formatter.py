"""
Unit tests for SkillMessageFormatter.
"""

from skill_engine.context.budget import Rejection
from skill_engine.errors import ModeBleedError
from skill_engine.modes.state_machine import ModeState, authorize
from skill_engine.session.decision import AdmittedContent, Decision
from skill_engine.skills.formatter import SkillMessageFormatter
from skill_engine.skills.models import ContextLayer


def _content(descriptor_id, layer=ContextLayer.PROCEDURAL, references=()):
    return AdmittedContent(
        descriptor_id=descriptor_id,
        layer=layer,
        weight=10,
        description="desc",
        body=f"Body of {descriptor_id}",
        references=references,
    )


class TestInstructionMessage:
    """Test per-skill messages."""

    def test_hidden_user_message(self):
        message = SkillMessageFormatter.create_instruction_message(_content("mapping/terrain"))
        assert message["role"] == "user"
        assert message["isMeta"] is True
        assert message["content"].startswith("# mapping/terrain")
        assert "Body of mapping/terrain" in message["content"]

    def test_recipe_lists_references(self):
        content = _content(
            "mapping/survey",
            layer=ContextLayer.COMPOSITION,
            references=("mapping/terrain", "mapping/routes"),
        )
        message = SkillMessageFormatter.create_instruction_message(content)
        assert "Composes: mapping/terrain, mapping/routes" in message["content"]

    def test_skills_list(self, make_descriptor):
        text = SkillMessageFormatter.format_skills_list(
            [make_descriptor("mapping/terrain"), make_descriptor("mapping/routes")]
        )
        assert text.splitlines() == [
            '"mapping/terrain": terrain skill',
            '"mapping/routes": routes skill',
        ]


class TestRenderDecision:
    """Test rendering a whole turn."""

    def test_sections(self):
        decision = Decision(
            session_id="s1",
            turn=1,
            mode=ModeState.EXPLORE,
            identity="You work on the mapping service.",
            admitted_content=[
                _content("mapping/terrain"),
                _content("mapping/survey", layer=ContextLayer.COMPOSITION, references=("mapping/terrain",)),
            ],
        )
        text = SkillMessageFormatter.render_decision(decision)

        assert text.index("<identity>") < text.index("<composition>") < text.index("<procedural>")
        assert "<mode>explore</mode>" in text
        assert "<notices>" not in text

    def test_notices(self):
        decision = Decision(
            session_id="s1",
            turn=2,
            mode=ModeState.IMPLEMENT,
            identity="",
            rejected=[Rejection(descriptor_id="mapping/big", weight=99, reason="too big")],
            authorization=authorize(ModeState.IMPLEMENT, "introduce-new-design-decision"),
            notices=[ModeBleedError("assumed review")],
        )
        text = SkillMessageFormatter.render_decision(decision)

        assert "<identity>" not in text
        assert "- rejected mapping/big: too big" in text
        assert "- denied introduce-new-design-decision" in text
        assert "[MODE_BLEED] assumed review" in text
