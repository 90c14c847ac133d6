"""
Session Module

Per-turn orchestration: match -> admit -> authorize -> Decision.
"""

from .controller import SkillSession
from .decision import AdmittedContent, Decision

__all__ = [
    "SkillSession",
    "AdmittedContent",
    "Decision",
]
