"""
Formatter for the skill context engine.

Renders admitted content and turn notices as prompt text.
"""

from typing import TYPE_CHECKING, Any, Dict, List, Optional

from skill_engine.skills.models import ContextLayer, SkillDescriptor

if TYPE_CHECKING:
    from skill_engine.session.decision import AdmittedContent, Decision


class SkillMessageFormatter:
    """Format skill-related messages for Agent consumption."""

    @staticmethod
    def create_instruction_message(content: "AdmittedContent") -> Dict[str, Any]:
        """Create hidden instruction message with a skill's body.

        Args:
            content: Admitted skill content

        Returns:
            Message dict with role and content
        """
        text = f"# {content.descriptor_id}\n\n"
        if content.layer == ContextLayer.COMPOSITION and content.references:
            text += "Composes: " + ", ".join(content.references) + "\n\n"
        text += content.body

        return {
            "role": "user",
            "content": text,
            "isMeta": True,  # Hidden from user, sent to API
        }

    @staticmethod
    def format_skills_list(descriptors: List[SkillDescriptor]) -> str:
        """Compact one-line-per-skill listing for a system prompt."""
        return "\n".join(f'"{d.id}": {d.description}' for d in descriptors)

    @classmethod
    def render_decision(cls, decision: "Decision") -> str:
        """Render identity, recipes and procedures of a turn as prompt text.

        Args:
            decision: The turn's Decision

        Returns:
            Prompt section text
        """
        sections: List[str] = []

        if decision.identity:
            sections.append(f"<identity>\n{decision.identity}\n</identity>")

        recipes = [c for c in decision.admitted_content if c.layer == ContextLayer.COMPOSITION]
        procedures = [c for c in decision.admitted_content if c.layer == ContextLayer.PROCEDURAL]

        for tag, group in (("composition", recipes), ("procedural", procedures)):
            if not group:
                continue
            bodies = "\n\n".join(cls.create_instruction_message(c)["content"] for c in group)
            sections.append(f"<{tag}>\n{bodies}\n</{tag}>")

        sections.append(f"<mode>{decision.mode.value}</mode>")

        notice = cls.format_notices(decision)
        if notice:
            sections.append(notice)

        return "\n\n".join(sections)

    @staticmethod
    def format_notices(decision: "Decision") -> Optional[str]:
        """Human-readable list of rejections, evictions, denials and notices."""
        lines: List[str] = []
        for rejection in decision.rejected:
            lines.append(f"- rejected {rejection.descriptor_id}: {rejection.reason}")
        for eviction in decision.evicted:
            lines.append(f"- evicted {eviction.descriptor_id}: {eviction.reason}")
        if decision.authorization is not None and decision.authorization.denied:
            lines.append(f"- denied {decision.authorization.category}: {decision.authorization.reason}")
        for notice in decision.notices:
            lines.append(f"- [{notice.code}] {notice.message}")

        if not lines:
            return None
        return "<notices>\n" + "\n".join(lines) + "\n</notices>"
