"""
Pytest configuration

Sets up the import path and shared catalog builders.
"""

import sys
from pathlib import Path
from typing import Iterable, Optional

import pytest


def pytest_configure(config):
    """
    Pytest configuration hook

    Puts the project root on the import path before collection
    """
    project_root = Path(__file__).parent.parent.resolve()
    project_root_str = str(project_root)

    if project_root_str not in sys.path:
        sys.path.insert(0, project_root_str)


# Also set the path directly (pytest_configure runs later for some plugins)
project_root = Path(__file__).parent.parent.resolve()
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


from skill_engine.skills.models import (  # noqa: E402
    ContextLayer,
    ExplicitTrigger,
    KeywordTrigger,
    Pack,
    SkillDescriptor,
)
from skill_engine.skills.registry import SkillRegistry  # noqa: E402


def build_descriptor(
    descriptor_id: str,
    weight: int = 10,
    phrases: Optional[Iterable[str]] = None,
    rules: Optional[Iterable] = None,
    layer: ContextLayer = ContextLayer.PROCEDURAL,
    **kwargs,
) -> SkillDescriptor:
    """Descriptor with a keyword rule on its own name unless rules are given."""
    name = descriptor_id.split("/", 1)[-1]
    if rules is None:
        rules = [KeywordTrigger(phrases=tuple(phrases or [name]))]
    return SkillDescriptor(
        id=descriptor_id,
        description=kwargs.pop("description", f"{name} skill"),
        rules=tuple(rules),
        weight=weight,
        pack_id=descriptor_id.split("/", 1)[0],
        layer=layer,
        body=kwargs.pop("body", f"Instructions for {name}."),
        **kwargs,
    )


@pytest.fixture
def make_descriptor():
    """Factory fixture for SkillDescriptor."""
    return build_descriptor


@pytest.fixture
def make_registry():
    """Factory fixture: descriptors grouped into packs by id prefix."""

    def _make(*descriptors: SkillDescriptor, disabled: Iterable[str] = (), **kwargs) -> SkillRegistry:
        grouped = {}
        for descriptor in descriptors:
            grouped.setdefault(descriptor.id.split("/", 1)[0], []).append(descriptor)
        disabled = set(disabled)
        packs = [
            Pack(id=pack_id, descriptors=tuple(items), enabled=pack_id not in disabled)
            for pack_id, items in grouped.items()
        ]
        return SkillRegistry.load(packs, **kwargs)

    return _make


@pytest.fixture
def explicit_rule():
    """Factory for explicit invocation rules."""
    return lambda token: ExplicitTrigger(token=token)
