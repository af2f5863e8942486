"""Canonical planner enum definitions.

Stored values are the enum *names* (``ACTIVE``, ``AUDIO`` ...); the HTTP layer
speaks the enum *values*. :class:`EnumMapping` keeps the two vocabularies in
one explicit table per enum so that parsing and rendering stay inverse.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, Mapping, TypeVar

__all__ = [
    "PlannerEnum",
    "ItemStatus",
    "NoteType",
    "NoteTab",
    "WorkspaceRole",
    "EnumMapping",
    "ITEM_STATUS",
    "NOTE_TYPE",
    "NOTE_TAB",
    "NOTE_TYPE_LABELS",
    "sa_enum",
]


class PlannerEnum(str, Enum):
    """Base class for enums persisted by the planner models."""

    @classmethod
    def values(cls) -> tuple[str, ...]:
        return tuple(item.value for item in cls)


class ItemStatus(PlannerEnum):
    """Lifecycle status shared by tasks and voice notes."""

    ACTIVE = "active"
    ARCHIVED = "archived"
    DELETED = "deleted"


class NoteType(PlannerEnum):
    TEXT = "TEXT"
    AUDIO = "AUDIO"


class NoteTab(PlannerEnum):
    """List views over voice notes."""

    ACTIVE = "active"
    CREATED = "created"
    ARCHIVED = "archived"
    DELETED = "deleted"


class WorkspaceRole(PlannerEnum):
    OWNER = "owner"
    MEMBER = "member"


E = TypeVar("E", bound=PlannerEnum)


@dataclass(frozen=True)
class EnumMapping(Generic[E]):
    """Bidirectional table between external strings and enum members."""

    enum_cls: type[E]
    table: Mapping[str, E]
    case_sensitive: bool = True
    _reverse: Mapping[E, str] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        reverse = {member: key for key, member in self.table.items()}
        if len(reverse) != len(self.table) or set(reverse) != set(self.enum_cls):
            raise ValueError(f"mapping for {self.enum_cls.__name__} is not a bijection")
        object.__setattr__(self, "_reverse", reverse)

    def parse(self, raw: object) -> E | None:
        """Return the member for ``raw`` or ``None`` when it is not recognised."""
        if not isinstance(raw, str):
            return None
        key = raw.strip()
        if not self.case_sensitive:
            key = key.lower()
        return self.table.get(key)

    def render(self, member: E) -> str:
        return self._reverse[member]

    def choices(self) -> tuple[str, ...]:
        return tuple(self.table)


ITEM_STATUS: EnumMapping[ItemStatus] = EnumMapping(
    ItemStatus,
    {
        "active": ItemStatus.ACTIVE,
        "archived": ItemStatus.ARCHIVED,
        "deleted": ItemStatus.DELETED,
    },
)

NOTE_TYPE: EnumMapping[NoteType] = EnumMapping(
    NoteType,
    {"text": NoteType.TEXT, "audio": NoteType.AUDIO},
    case_sensitive=False,
)

NOTE_TAB: EnumMapping[NoteTab] = EnumMapping(
    NoteTab,
    {
        "active": NoteTab.ACTIVE,
        "created": NoteTab.CREATED,
        "archived": NoteTab.ARCHIVED,
        "deleted": NoteTab.DELETED,
    },
)

NOTE_TYPE_LABELS: Mapping[NoteType, str] = {
    NoteType.AUDIO: "Voice note",
    NoteType.TEXT: "Text note (no recording required)",
}


def sa_enum(enum_cls: type[PlannerEnum]):
    """Return a SQLAlchemy ``Enum`` column type storing member names."""

    from sqlalchemy import Enum as SAEnum

    name = "".join(
        f"_{ch.lower()}" if ch.isupper() and idx else ch.lower()
        for idx, ch in enumerate(enum_cls.__name__)
    )
    return SAEnum(enum_cls, name=name, native_enum=False, length=16)
