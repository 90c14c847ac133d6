"""
Skill data models for the skill context engine.

Defines Pydantic models for:
- TurnContext: What the matcher sees for one turn
- KeywordTrigger / ContextTrigger / ExplicitTrigger: Activation rules
- SkillDescriptor: One procedural-knowledge module (immutable)
- Pack: A named, independently enabled group of descriptors
- SkillFrontmatter / PackManifest: On-disk forms read by the PackLoader
"""

import fnmatch
import re
from enum import Enum
from typing import Annotated, Any, Callable, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ContextLayer(str, Enum):
    """The four layers of the session context model."""
    IDENTITY = "identity"        # Always resident, never budgeted
    PROCEDURAL = "procedural"    # Admitted skill bodies, evictable
    COMPOSITION = "composition"  # Recipes referencing procedural entries
    WORKING = "working"          # Per-turn scratch, discarded at turn end


class RuleKind(str, Enum):
    """Activation rule variants."""
    KEYWORD = "keyword"
    CONTEXT = "context"
    EXPLICIT = "explicit"


# Higher wins. An explicit invocation always outranks an incidental keyword.
SPECIFICITY: Dict[RuleKind, int] = {
    RuleKind.EXPLICIT: 3,
    RuleKind.CONTEXT: 2,
    RuleKind.KEYWORD: 1,
}


class TurnContext(BaseModel):
    """Request context for a single turn.

    ``facts`` are durable session facts the caller asserts; ``working`` is
    ephemeral scratch that is discarded when the turn ends.
    """

    text: str = Field(default="", description="Free-text request")
    resources: List[str] = Field(
        default_factory=list,
        description="Working resource identifiers (paths, URIs)",
    )
    domain_tags: List[str] = Field(
        default_factory=list,
        description="Declared project domain tags",
    )
    invocation_token: Optional[str] = Field(
        default=None,
        description="Explicit invocation token, e.g. '/terrain'",
    )
    action: Optional[str] = Field(
        default=None,
        description="Action category implied by the turn",
    )
    assumed_mode: Optional[str] = Field(
        default=None,
        description="Mode the caller inferred for this action",
    )
    facts: Dict[str, Any] = Field(default_factory=dict)
    working: Dict[str, Any] = Field(default_factory=dict)
    check_results: Dict[str, bool] = Field(
        default_factory=dict,
        description="Outcome of every check executed this turn",
    )
    expected_checks: List[str] = Field(
        default_factory=list,
        description="Checks the turn was meant to run; any without an outcome leaves the report incomplete",
    )


class KeywordTrigger(BaseModel):
    """Case-insensitive phrases; any phrase appearing in the text matches."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["keyword"] = "keyword"
    phrases: Tuple[str, ...] = Field(..., min_length=1)

    @field_validator("phrases")
    @classmethod
    def validate_phrases(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        cleaned = tuple(p.strip() for p in v if p and p.strip())
        if not cleaned:
            raise ValueError("KeywordTrigger needs at least one non-empty phrase")
        return cleaned

    @property
    def rule_kind(self) -> RuleKind:
        return RuleKind.KEYWORD

    def matches(self, context: TurnContext) -> bool:
        text = context.text.lower()
        if not text:
            return False
        for phrase in self.phrases:
            pattern = r"(?<!\w)" + re.escape(phrase.lower()) + r"(?!\w)"
            if re.search(pattern, text):
                return True
        return False


class ContextTrigger(BaseModel):
    """Predicate over ambient session context.

    Satisfied when any declared domain tag is present, any working resource
    matches one of the glob patterns, or the optional in-process predicate
    returns True.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["context"] = "context"
    domain_tags: Tuple[str, ...] = ()
    resource_patterns: Tuple[str, ...] = ()
    predicate: Optional[Callable[[TurnContext], bool]] = Field(default=None, exclude=True)

    @model_validator(mode="after")
    def check_has_condition(self) -> "ContextTrigger":
        if not (self.domain_tags or self.resource_patterns or self.predicate):
            raise ValueError(
                "ContextTrigger needs domain_tags, resource_patterns or a predicate"
            )
        return self

    @property
    def rule_kind(self) -> RuleKind:
        return RuleKind.CONTEXT

    def matches(self, context: TurnContext) -> bool:
        tags = {t.lower() for t in context.domain_tags}
        if any(tag.lower() in tags for tag in self.domain_tags):
            return True

        for resource in context.resources:
            if any(fnmatch.fnmatch(resource, pattern) for pattern in self.resource_patterns):
                return True

        if self.predicate is not None:
            return bool(self.predicate(context))

        return False


class ExplicitTrigger(BaseModel):
    """A literal invocation token."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["explicit"] = "explicit"
    token: str = Field(..., min_length=1)

    @property
    def rule_kind(self) -> RuleKind:
        return RuleKind.EXPLICIT

    def matches(self, context: TurnContext) -> bool:
        if not context.invocation_token:
            return False
        return context.invocation_token.lstrip("/") == self.token.lstrip("/")


ActivationRule = Annotated[
    Union[KeywordTrigger, ContextTrigger, ExplicitTrigger],
    Field(discriminator="kind"),
]


class SkillDescriptor(BaseModel):
    """Metadata and content for one procedural-knowledge module.

    Structural typing is enforced here; catalog rules (identifier format,
    uniqueness, positive weight) are enforced by the SkillRegistry so a bad
    descriptor is excluded instead of breaking the whole catalog.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default="", description="Unique identifier, 'pack/name'")
    description: str = Field(default="", description="One-line description")
    rules: Tuple[ActivationRule, ...] = Field(
        default=(),
        description="Activation rules, evaluated in declaration order",
    )
    weight: int = Field(default=0, description="Estimated content size (tokens)")
    preconditions: Tuple[str, ...] = ()
    guarantees: Tuple[str, ...] = ()
    pack_id: str = Field(default="", description="Provenance pack identifier")
    layer: ContextLayer = ContextLayer.PROCEDURAL
    body: str = Field(default="", description="Instruction text admitted into context")
    references: Tuple[str, ...] = Field(
        default=(),
        description="Descriptor ids composed by a recipe (composition layer only)",
    )

    @property
    def name(self) -> str:
        return self.id.split("/", 1)[-1]

    @property
    def is_composition(self) -> bool:
        return self.layer == ContextLayer.COMPOSITION

    def first_matching_rule(self, context: TurnContext) -> Optional[ActivationRule]:
        """Return the first satisfied rule in declaration order."""
        for rule in self.rules:
            if rule.matches(context):
                return rule
        return None


class Pack(BaseModel):
    """A named grouping of skill descriptors.

    ``scope_boundary`` lists what the pack deliberately excludes. It is only
    used by the validator, never by runtime matching.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    description: str = ""
    enabled: bool = True
    descriptors: Tuple[SkillDescriptor, ...] = ()
    scope_boundary: Tuple[str, ...] = ()


class PackManifest(BaseModel):
    """pack.yaml parsed from a pack directory."""

    id: str = Field(
        ...,
        description="Pack identifier (lowercase, underscores or hyphens)",
        pattern=r"^[a-z][a-z0-9_-]*$",
    )
    description: str = ""
    version: str = "1.0.0"
    enabled: bool = True
    scope_boundary: List[str] = Field(
        default_factory=list,
        description="Topics this pack deliberately does not cover",
    )


class SkillFrontmatter(BaseModel):
    """YAML frontmatter parsed from SKILL.md files.

    This model represents the metadata section at the top of each SKILL.md file,
    enclosed in YAML delimiters (---).
    """

    name: str = Field(
        ...,
        description="Skill name (lowercase, underscores or hyphens)",
        pattern=r"^[a-z][a-z0-9_-]*$",
    )
    description: str = Field(
        ...,
        description="What the skill does AND when to use it.",
    )
    version: str = Field(default="1.0.0")
    weight: Optional[int] = Field(
        default=None,
        description="Content weight; estimated from the body when omitted",
    )
    layer: Literal["procedural", "composition"] = "procedural"
    triggers: List[ActivationRule] = Field(..., min_length=1)
    references: List[str] = Field(default_factory=list)
    preconditions: List[str] = Field(default_factory=list)
    guarantees: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate skill name format."""
        if not v or len(v) > 50:
            raise ValueError("Skill name must be 1-50 characters")
        return v

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str) -> str:
        """Validate description length."""
        if len(v) > 500:
            raise ValueError("Description must be <= 500 characters")
        return v

    def to_descriptor(self, pack_id: str, body: str, weight: int) -> SkillDescriptor:
        return SkillDescriptor(
            id=f"{pack_id}/{self.name}",
            description=self.description,
            rules=tuple(self.triggers),
            weight=weight,
            preconditions=tuple(self.preconditions),
            guarantees=tuple(self.guarantees),
            pack_id=pack_id,
            layer=ContextLayer(self.layer),
            body=body,
            references=tuple(self.references),
        )
