from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, field_validator


class ContactStatus(str, Enum):
    """Lifecycle status of a contact."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"


class LabelColor(str, Enum):
    """Fixed palette a label can be drawn in."""

    BLUE = "blue"
    GREEN = "green"
    YELLOW = "yellow"
    PURPLE = "purple"
    RED = "red"
    GRAY = "gray"


class Label(BaseModel):
    """Domain model for a shared, coloured tag."""

    model_config = ConfigDict(use_enum_values=True)

    id: str
    name: str
    color: LabelColor


class Contact(BaseModel):
    """Contact record with its labels merged in."""

    model_config = ConfigDict(use_enum_values=True)

    id: str
    name: str
    email: str
    phone: str | None = None
    company: str | None = None
    role: str | None = None
    status: ContactStatus = ContactStatus.ACTIVE
    avatar: str | None = None
    last_contact: str | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    labels: list[Label] = []

    @field_validator("labels")
    @classmethod
    def _unique_labels(cls, labels: list[Label]) -> list[Label]:
        return dedupe_labels(labels)


def dedupe_labels(labels: list[Label]) -> list[Label]:
    """Drop repeated label ids, keeping the first occurrence."""
    seen: set[str] = set()
    unique = []
    for label in labels:
        if label.id not in seen:
            seen.add(label.id)
            unique.append(label)
    return unique


def _normalize(values) -> frozenset[str]:
    if not values:
        return frozenset()
    # a bare string or enum member is one value, not an iterable of characters
    if isinstance(values, (str, Enum)):
        values = (values,)
    return frozenset(v.value if isinstance(v, Enum) else str(v) for v in values)


@dataclass(frozen=True, slots=True)
class DateRange:
    """
    Inclusive last-contact date range.

    A bound of None or "" is unset. Bounds are date strings, parsed at
    evaluation time so malformed input can fail closed instead of raising.
    """

    start: str | None = None
    end: str | None = None

    @property
    def is_active(self) -> bool:
        return bool(self.start) or bool(self.end)


@dataclass(frozen=True, slots=True)
class FilterCriteria:
    """
    Transient filter state for the contact list.

    Every field is optional. An empty string, empty collection or None all
    mean the criterion is inactive.
    """

    search: str = ""
    statuses: frozenset[str] = field(default_factory=frozenset)
    label_ids: frozenset[str] = field(default_factory=frozenset)
    company: str = ""
    role: str = ""
    date_range: DateRange = field(default_factory=DateRange)

    def __post_init__(self):
        # Accept any iterable (list from a query string, set of enums, ...)
        object.__setattr__(self, "statuses", _normalize(self.statuses))
        object.__setattr__(self, "label_ids", _normalize(self.label_ids))
        object.__setattr__(self, "search", self.search or "")
        object.__setattr__(self, "company", self.company or "")
        object.__setattr__(self, "role", self.role or "")
        if self.date_range is None:
            object.__setattr__(self, "date_range", DateRange())

    @property
    def is_empty(self) -> bool:
        return not (
            self.search
            or self.statuses
            or self.label_ids
            or self.company
            or self.role
            or self.date_range.is_active
        )
