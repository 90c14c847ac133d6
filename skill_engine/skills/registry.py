"""
Skill Registry for the skill context engine.

Holds the catalog of installed skill descriptors. Built once per process
from a list of packs and read-only afterwards, so one registry can be
shared by every session built from the same catalog.
"""

import logging
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from skill_engine.errors import MalformedDescriptorError, SkillNotFoundError
from skill_engine.skills.models import ContextLayer, Pack, SkillDescriptor

logger = logging.getLogger(__name__)

_CATALOG_LAYERS = (ContextLayer.PROCEDURAL, ContextLayer.COMPOSITION)


class SkillRegistry:
    """Central, immutable registry for all installed skill descriptors.

    The registry keeps descriptors in declaration order (pack order, then
    order within the pack) so every downstream tie-break is deterministic.
    """

    def __init__(
        self,
        packs: Sequence[Pack],
        descriptors: Sequence[SkillDescriptor],
        errors: Sequence[MalformedDescriptorError] = (),
    ):
        """Initialize the registry from already validated descriptors.

        Use :meth:`load` to build a registry from raw packs.

        Args:
            packs: Packs in declaration order
            descriptors: Valid descriptors in declaration order
            errors: Descriptors rejected while building the catalog
        """
        self._packs: Tuple[Pack, ...] = tuple(packs)
        self._pack_index: Mapping[str, Pack] = MappingProxyType(
            {pack.id: pack for pack in self._packs}
        )
        self._descriptors: Mapping[str, SkillDescriptor] = MappingProxyType(
            {d.id: d for d in descriptors}
        )
        self._order: Mapping[str, int] = MappingProxyType(
            {d.id: index for index, d in enumerate(descriptors)}
        )
        self._errors: Tuple[MalformedDescriptorError, ...] = tuple(errors)

    @classmethod
    def load(cls, packs: Iterable[Pack], strict: bool = False) -> "SkillRegistry":
        """Build a registry from packs.

        Malformed descriptors are excluded and logged; the rest of the
        catalog still loads.

        Args:
            packs: Packs in declaration order
            strict: Raise on the first malformed descriptor instead

        Returns:
            A read-only SkillRegistry

        Raises:
            MalformedDescriptorError: Only when ``strict`` is True
        """
        packs = list(packs)
        accepted: Dict[str, SkillDescriptor] = {}
        errors: List[MalformedDescriptorError] = []

        for pack in packs:
            for descriptor in pack.descriptors:
                try:
                    cls._validate_descriptor(descriptor, pack, accepted)
                except MalformedDescriptorError as e:
                    if strict:
                        raise
                    logger.warning(f"Excluding descriptor from pack '{pack.id}': {e.message}")
                    errors.append(e)
                    continue
                if not descriptor.pack_id:
                    descriptor = descriptor.model_copy(update={"pack_id": pack.id})
                accepted[descriptor.id] = descriptor

        # Recipes may reference descriptors declared later, so check them last.
        # Recipes only reference procedural descriptors, which carry no
        # references of their own, so one pass settles every recipe.
        for descriptor in list(accepted.values()):
            missing = [ref for ref in descriptor.references if ref not in accepted]
            composed = [
                ref for ref in descriptor.references
                if ref in accepted and accepted[ref].is_composition
            ]
            error = None
            if missing:
                error = MalformedDescriptorError(
                    f"Descriptor '{descriptor.id}' references unknown skills: {', '.join(missing)}",
                    descriptor_id=descriptor.id,
                    pack_id=descriptor.pack_id,
                )
            elif composed:
                error = MalformedDescriptorError(
                    f"Descriptor '{descriptor.id}' references other recipes: {', '.join(composed)}",
                    descriptor_id=descriptor.id,
                    pack_id=descriptor.pack_id,
                )
            if error is not None:
                if strict:
                    raise error
                logger.warning(error.message)
                errors.append(error)
                del accepted[descriptor.id]

        registry = cls(packs, list(accepted.values()), errors)
        logger.info(
            f"Skill registry built: {len(registry)} descriptors from {len(packs)} packs "
            f"({len(errors)} excluded)"
        )
        return registry

    @staticmethod
    def _validate_descriptor(
        descriptor: SkillDescriptor,
        pack: Pack,
        accepted: Mapping[str, SkillDescriptor],
    ) -> None:
        descriptor_id = descriptor.id
        if not descriptor_id or not descriptor_id.strip():
            raise MalformedDescriptorError(
                "Descriptor is missing an identifier", pack_id=pack.id
            )

        pack_part, _, name_part = descriptor_id.partition("/")
        if not pack_part or not name_part or "/" in name_part:
            raise MalformedDescriptorError(
                f"Identifier '{descriptor_id}' must have the form 'pack/name'",
                descriptor_id=descriptor_id,
                pack_id=pack.id,
            )
        if pack_part != pack.id or (descriptor.pack_id and descriptor.pack_id != pack.id):
            raise MalformedDescriptorError(
                f"Descriptor '{descriptor_id}' is declared in pack '{pack.id}'",
                descriptor_id=descriptor_id,
                pack_id=pack.id,
            )

        if descriptor_id in accepted:
            raise MalformedDescriptorError(
                f"Duplicate identifier '{descriptor_id}'",
                descriptor_id=descriptor_id,
                pack_id=pack.id,
            )

        if descriptor.weight <= 0:
            raise MalformedDescriptorError(
                f"Descriptor '{descriptor_id}' has non-positive weight {descriptor.weight}",
                descriptor_id=descriptor_id,
                pack_id=pack.id,
            )

        if not descriptor.rules:
            raise MalformedDescriptorError(
                f"Descriptor '{descriptor_id}' declares no activation rules",
                descriptor_id=descriptor_id,
                pack_id=pack.id,
            )

        if descriptor.layer not in _CATALOG_LAYERS:
            raise MalformedDescriptorError(
                f"Descriptor '{descriptor_id}' cannot live in the {descriptor.layer.value} layer",
                descriptor_id=descriptor_id,
                pack_id=pack.id,
            )

        if descriptor.references and not descriptor.is_composition:
            raise MalformedDescriptorError(
                f"Only composition descriptors may reference other skills ('{descriptor_id}')",
                descriptor_id=descriptor_id,
                pack_id=pack.id,
            )

    def __len__(self) -> int:
        return len(self._descriptors)

    def __contains__(self, descriptor_id: object) -> bool:
        return descriptor_id in self._descriptors

    @property
    def packs(self) -> Tuple[Pack, ...]:
        return self._packs

    @property
    def errors(self) -> Tuple[MalformedDescriptorError, ...]:
        """Descriptors excluded at catalog build time."""
        return self._errors

    def lookup(self, descriptor_id: str) -> SkillDescriptor:
        """Get a descriptor by identifier.

        Raises:
            SkillNotFoundError: If the identifier is unknown
        """
        descriptor = self._descriptors.get(descriptor_id)
        if descriptor is None:
            raise SkillNotFoundError(descriptor_id)
        return descriptor

    def get(self, descriptor_id: str) -> Optional[SkillDescriptor]:
        return self._descriptors.get(descriptor_id)

    def get_pack(self, pack_id: str) -> Optional[Pack]:
        return self._pack_index.get(pack_id)

    def declaration_index(self, descriptor_id: str) -> int:
        """Position of a descriptor in catalog declaration order."""
        try:
            return self._order[descriptor_id]
        except KeyError:
            raise SkillNotFoundError(descriptor_id) from None

    def is_pack_enabled(self, pack_id: str, enabled: Optional[Iterable[str]] = None) -> bool:
        if enabled is not None:
            return pack_id in set(enabled)
        pack = self._pack_index.get(pack_id)
        return bool(pack and pack.enabled)

    def descriptors_in_enabled_packs(
        self,
        enabled: Optional[Iterable[str]] = None,
    ) -> Tuple[SkillDescriptor, ...]:
        """Descriptors whose pack is enabled, in declaration order.

        Args:
            enabled: Per-session override of enabled pack ids. When None,
                each pack's own ``enabled`` flag is used.

        Returns:
            Tuple of descriptors (stable declaration order)
        """
        if enabled is not None:
            enabled_ids = set(enabled)
        else:
            enabled_ids = {pack.id for pack in self._packs if pack.enabled}
        return tuple(d for d in self._descriptors.values() if d.pack_id in enabled_ids)

    def list_skill_names(self) -> List[str]:
        """List all descriptor ids in declaration order."""
        return list(self._descriptors.keys())

    def get_skills_info(self) -> List[Dict[str, object]]:
        """Get summary info about all descriptors."""
        return [
            {
                "id": d.id,
                "description": d.description,
                "pack_id": d.pack_id,
                "layer": d.layer.value,
                "weight": d.weight,
                "rules": [rule.kind for rule in d.rules],
                "enabled": self.is_pack_enabled(d.pack_id),
            }
            for d in self._descriptors.values()
        ]
