"""
Contact filtering predicate.

Pure functions: given the full contact list and the current FilterCriteria,
return the contacts where every active criterion holds. Criteria groups are
ANDed; values inside a multi-select group (statuses, label ids) are ORed.
Input order is preserved and the input list is never modified.
"""

from collections.abc import Iterable
from datetime import date, datetime

from app.models.domain.contact_domain import Contact, FilterCriteria


def parse_contact_date(value: str | None) -> date | None:
    """
    Parse an ISO date or datetime string to a calendar date.

    Returns None for missing or malformed input.
    """
    if not value:
        return None

    text = str(value).strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass

    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None


def _contains(haystack: str | None, needle: str) -> bool:
    return needle.lower() in (haystack or "").lower()


def matches_search(contact: Contact, term: str) -> bool:
    """Search term against name, email, company and label names."""
    return (
        _contains(contact.name, term)
        or _contains(contact.email, term)
        or _contains(contact.company, term)
        or any(_contains(label.name, term) for label in contact.labels)
    )


def in_date_range(contact: Contact, start: str | None, end: str | None) -> bool:
    """
    Inclusive range check on last_contact.

    Fails closed: an unparsable contact date, or an unparsable bound that was
    supplied, excludes the contact.
    """
    contacted = parse_contact_date(contact.last_contact)
    if contacted is None:
        return False

    if start:
        lower = parse_contact_date(start)
        if lower is None or contacted < lower:
            return False

    if end:
        upper = parse_contact_date(end)
        if upper is None or contacted > upper:
            return False

    return True


def matches(contact: Contact, criteria: FilterCriteria) -> bool:
    """True when the contact satisfies every active criterion."""
    if criteria.search and not matches_search(contact, criteria.search):
        return False

    if criteria.statuses and contact.status not in criteria.statuses:
        return False

    if criteria.label_ids and not any(label.id in criteria.label_ids for label in contact.labels):
        return False

    if criteria.company and not _contains(contact.company, criteria.company):
        return False

    if criteria.role and not _contains(contact.role, criteria.role):
        return False

    if criteria.date_range.is_active and not in_date_range(
        contact, criteria.date_range.start, criteria.date_range.end
    ):
        return False

    return True


def filter_contacts(contacts: Iterable[Contact], criteria: FilterCriteria) -> list[Contact]:
    """Stable filter of contacts by criteria. Always a full rescan."""
    return [contact for contact in contacts if matches(contact, criteria)]


def count_active_filters(criteria: FilterCriteria) -> int:
    """Number of active filter groups, not counting the search term."""
    return sum(
        [
            bool(criteria.statuses),
            bool(criteria.label_ids),
            bool(criteria.company),
            bool(criteria.role),
            criteria.date_range.is_active,
        ]
    )
