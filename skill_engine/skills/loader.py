"""
Pack Loader for the skill context engine.

Builds Pack objects from directories on disk:

    <packs_root>/
        <pack>/
            pack.yaml          # id, description, enabled, scope_boundary
            <skill>/SKILL.md   # YAML frontmatter + instruction body

A broken SKILL.md only drops that skill; a broken pack.yaml drops the pack.
"""

import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import yaml
from pydantic import ValidationError

from config import Config, get_config
from skill_engine.context.token_counter import TokenCounter, get_token_counter
from skill_engine.errors import CatalogLoadError, InvalidSkillError
from skill_engine.skills.models import Pack, PackManifest, SkillDescriptor, SkillFrontmatter
from skill_engine.skills.registry import SkillRegistry
from skill_engine.skills.validator import validate_catalog

logger = logging.getLogger(__name__)

PACK_MANIFEST = "pack.yaml"
SKILL_FILE = "SKILL.md"

_FRONTMATTER_RE = re.compile(r"^---\n(.*?)\n---\n?", re.DOTALL)


def split_frontmatter(content: str, source: Path) -> Tuple[Dict[str, Any], str]:
    """Split a SKILL.md file into its frontmatter dict and body.

    Raises:
        InvalidSkillError: If frontmatter is missing or not valid YAML
    """
    frontmatter_match = _FRONTMATTER_RE.match(content)
    if not frontmatter_match:
        raise InvalidSkillError(
            f"{source}: Missing YAML frontmatter (must start with ---)"
        )

    try:
        frontmatter_dict = yaml.safe_load(frontmatter_match.group(1))
    except yaml.YAMLError as e:
        raise InvalidSkillError(f"{source}: Invalid YAML: {e}")

    if not isinstance(frontmatter_dict, dict):
        raise InvalidSkillError(f"{source}: Frontmatter must be a mapping")

    body = content[frontmatter_match.end():].strip()
    return frontmatter_dict, body


class PackLoader:
    """Scan directories for packs and load their skills.

    Each entry of ``pack_dirs`` is either a pack directory itself (it holds
    a pack.yaml) or a root whose immediate subdirectories are packs. Packs
    and skills are loaded in a stable order so registry declaration order
    is reproducible.
    """

    def __init__(
        self,
        pack_dirs: Sequence[Path],
        token_counter: Optional[TokenCounter] = None,
    ):
        """Initialize the pack loader.

        Args:
            pack_dirs: Directories to search for packs, in priority order
            token_counter: Used to estimate weight when SKILL.md omits it
        """
        self.pack_dirs = [Path(d) for d in pack_dirs]
        self.token_counter = token_counter or get_token_counter()
        self.errors: List[CatalogLoadError] = []

    def load_packs(self) -> List[Pack]:
        """Load every pack found under the configured directories.

        Returns:
            Packs in discovery order
        """
        packs: List[Pack] = []
        seen: Dict[str, Path] = {}

        for pack_dir in self._discover_pack_dirs():
            try:
                pack = self.load_pack(pack_dir)
            except CatalogLoadError as e:
                logger.warning(f"Skipping pack at {pack_dir}: {e.message}")
                self.errors.append(e)
                continue

            if pack.id in seen:
                error = CatalogLoadError(
                    f"Pack id '{pack.id}' at {pack_dir} already loaded from {seen[pack.id]}",
                    details={"pack_id": pack.id},
                )
                logger.warning(error.message)
                self.errors.append(error)
                continue

            seen[pack.id] = pack_dir
            packs.append(pack)

        return packs

    def _discover_pack_dirs(self) -> List[Path]:
        found: List[Path] = []
        for directory in self.pack_dirs:
            if not directory.is_dir():
                logger.warning(f"Pack directory does not exist: {directory}")
                continue

            if (directory / PACK_MANIFEST).exists():
                found.append(directory)
                continue

            for child in sorted(p for p in directory.iterdir() if p.is_dir()):
                if (child / PACK_MANIFEST).exists() or any(child.glob(f"*/{SKILL_FILE}")):
                    found.append(child)
        return found

    def load_pack(self, pack_dir: Path) -> Pack:
        """Load one pack directory.

        Raises:
            InvalidSkillError: If pack.yaml is present but invalid
        """
        pack_dir = Path(pack_dir)
        manifest = self._load_manifest(pack_dir)

        descriptors: List[SkillDescriptor] = []
        for skill_md in sorted(pack_dir.glob(f"*/{SKILL_FILE}")):
            try:
                descriptors.append(self.load_skill(skill_md, manifest.id))
            except InvalidSkillError as e:
                logger.warning(f"Failed to load {skill_md}: {e.message}")
                self.errors.append(e)

        return Pack(
            id=manifest.id,
            description=manifest.description,
            enabled=manifest.enabled,
            descriptors=tuple(descriptors),
            scope_boundary=tuple(manifest.scope_boundary),
        )

    def _load_manifest(self, pack_dir: Path) -> PackManifest:
        manifest_path = pack_dir / PACK_MANIFEST
        data: Any = {}
        if manifest_path.exists():
            try:
                data = yaml.safe_load(manifest_path.read_text(encoding="utf-8")) or {}
            except yaml.YAMLError as e:
                raise InvalidSkillError(f"{manifest_path}: Invalid YAML: {e}")

        if not isinstance(data, dict):
            raise InvalidSkillError(f"{manifest_path}: Manifest must be a mapping")
        data.setdefault("id", pack_dir.name)

        try:
            return PackManifest(**data)
        except ValidationError as e:
            raise InvalidSkillError(f"{manifest_path}: Validation error: {e}")

    def load_skill(self, skill_md_path: Path, pack_id: str) -> SkillDescriptor:
        """Parse a SKILL.md file into a descriptor.

        Args:
            skill_md_path: Path to SKILL.md file
            pack_id: Owning pack id (prefix of the descriptor id)

        Returns:
            SkillDescriptor with body and weight filled in

        Raises:
            InvalidSkillError: If frontmatter is invalid or missing required fields
        """
        content = skill_md_path.read_text(encoding="utf-8")
        frontmatter_dict, body = split_frontmatter(content, skill_md_path)

        try:
            frontmatter = SkillFrontmatter(**frontmatter_dict)
        except ValidationError as e:
            raise InvalidSkillError(f"{skill_md_path}: Validation error: {e}")

        weight = frontmatter.weight
        if weight is None:
            weight = self.token_counter.estimate_weight(body)

        return frontmatter.to_descriptor(pack_id=pack_id, body=body, weight=weight)


def load_registry(config: Optional[Config] = None) -> SkillRegistry:
    """Load packs from the configured directories and build a registry.

    Args:
        config: Engine configuration (global configuration when None)

    Returns:
        SkillRegistry over every pack found
    """
    config = config or get_config()
    counter = get_token_counter(config.token.model, config.token.chars_per_token)
    loader = PackLoader([Path(d) for d in config.catalog.pack_dirs], token_counter=counter)
    packs = loader.load_packs()

    if config.catalog.lint:
        validate_catalog(packs)

    return SkillRegistry.load(packs, strict=config.catalog.strict)
