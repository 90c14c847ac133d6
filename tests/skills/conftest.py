"""
Shared fixtures for skills tests
"""

import pytest


@pytest.fixture
def packs_base_dir(tmp_path):
    """Create a temporary packs directory."""
    packs_dir = tmp_path / "packs"
    packs_dir.mkdir()
    return packs_dir


@pytest.fixture
def sample_pack(packs_base_dir):
    """Create a pack with two procedural skills and one recipe."""
    pack_dir = packs_base_dir / "mapping"
    pack_dir.mkdir()

    (pack_dir / "pack.yaml").write_text("""id: mapping
description: "Terrain and route mapping"
version: "1.2.0"
scope_boundary:
  - billing
""")

    terrain = pack_dir / "terrain"
    terrain.mkdir()
    (terrain / "SKILL.md").write_text("""---
name: terrain
description: "Survey the terrain of a codebase"
weight: 120
triggers:
  - kind: explicit
    token: /terrain
  - kind: keyword
    phrases: ["map the terrain", "survey"]
guarantees:
  - terrain_map
---

# Terrain

Walk the tree and list the modules.
""")

    routes = pack_dir / "routes"
    routes.mkdir()
    (routes / "SKILL.md").write_text("""---
name: routes
description: "Trace request routes"
triggers:
  - kind: context
    resource_patterns: ["*/routes/*.py"]
preconditions:
  - terrain_map
---

Follow every route from the entry point.
""")

    recipe = pack_dir / "full_survey"
    recipe.mkdir()
    (recipe / "SKILL.md").write_text("""---
name: full_survey
description: "Terrain then routes"
layer: composition
triggers:
  - kind: keyword
    phrases: ["full survey"]
references:
  - mapping/terrain
  - mapping/routes
---

Run terrain, then routes.
""")

    return pack_dir


@pytest.fixture
def broken_skill(sample_pack):
    """Add a skill whose frontmatter is missing its triggers."""
    skill_dir = sample_pack / "broken"
    skill_dir.mkdir()
    (skill_dir / "SKILL.md").write_text("""---
name: broken
description: "No triggers declared"
---

Body.
""")
    return skill_dir


@pytest.fixture
def second_pack(packs_base_dir):
    """A disabled pack without pack.yaml metadata beyond its flag."""
    pack_dir = packs_base_dir / "review"
    pack_dir.mkdir()
    (pack_dir / "pack.yaml").write_text("enabled: false\n")

    skill_dir = pack_dir / "checklist"
    skill_dir.mkdir()
    (skill_dir / "SKILL.md").write_text("""---
name: checklist
description: "Review checklist"
weight: 40
triggers:
  - kind: keyword
    phrases: ["review"]
---

Check naming, tests and error paths.
""")
    return pack_dir
