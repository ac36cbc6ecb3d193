"""
Contact workspace: the owned application state behind the contact list view.

Holds the working contact set, the known labels, the search term and the
filter criteria. Every mutation goes through an explicit method, and
visible_contacts() re-derives the filtered view from scratch on each call.
"""

from dataclasses import replace

from app.infrastructure.observability.logging import get_logger
from app.models.domain.contact_domain import Contact, FilterCriteria, Label, dedupe_labels
from app.services.contact_filter import count_active_filters, filter_contacts

logger = get_logger(__name__)


class ContactWorkspace:
    """Working set of contacts plus the criteria narrowing what is shown."""

    def __init__(
        self,
        contacts: list[Contact] | None = None,
        labels: list[Label] | None = None,
    ):
        self._contacts: list[Contact] = list(contacts or [])
        self._labels: list[Label] = dedupe_labels(list(labels or []))
        self._search: str = ""
        self._criteria: FilterCriteria = FilterCriteria()

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def contacts(self) -> list[Contact]:
        return list(self._contacts)

    @property
    def labels(self) -> list[Label]:
        return list(self._labels)

    @property
    def search(self) -> str:
        return self._search

    @property
    def criteria(self) -> FilterCriteria:
        return self._criteria

    def get(self, contact_id: str) -> Contact | None:
        return next((c for c in self._contacts if c.id == contact_id), None)

    # ------------------------------------------------------------------
    # Working set updates
    # ------------------------------------------------------------------

    def replace_contacts(self, contacts: list[Contact]) -> None:
        """Swap the whole working set, e.g. after a fresh list fetch."""
        self._contacts = list(contacts)
        logger.debug("Workspace contacts replaced", total=len(self._contacts))

    def replace_labels(self, labels: list[Label]) -> None:
        self._labels = dedupe_labels(list(labels))

    def upsert_contact(self, contact: Contact) -> None:
        """Replace the contact with the same id in place, or append it."""
        for index, existing in enumerate(self._contacts):
            if existing.id == contact.id:
                self._contacts[index] = contact
                return
        self._contacts.append(contact)

    def remove_contact(self, contact_id: str) -> Contact | None:
        """Drop a contact from the working set; returns it if it was present."""
        contact = self.get(contact_id)
        if contact is not None:
            self._contacts = [c for c in self._contacts if c.id != contact_id]
        return contact

    def update_contact_labels(self, contact_id: str, labels: list[Label]) -> Contact | None:
        """
        Set a contact's labels and register any label not yet known.

        Returns the updated contact, or None when the id is not in the set.
        """
        contact = self.get(contact_id)
        if contact is None:
            return None

        updated = contact.model_copy(update={"labels": dedupe_labels(list(labels))})
        self.upsert_contact(updated)

        known = {label.id for label in self._labels}
        new_labels = [label for label in updated.labels if label.id not in known]
        if new_labels:
            self._labels = self._labels + new_labels

        return updated

    # ------------------------------------------------------------------
    # Criteria
    # ------------------------------------------------------------------

    def set_search(self, term: str | None) -> None:
        self._search = term or ""

    def set_filters(self, criteria: FilterCriteria) -> None:
        """
        Replace the filter groups.

        The workspace search term is the only search source: a non-empty
        criteria.search replaces it, an empty one leaves it unchanged.
        """
        if criteria.search:
            self._search = criteria.search
        self._criteria = replace(criteria, search="")

    def clear_filters(self) -> None:
        """Reset every filter group. The search term is kept."""
        self._criteria = FilterCriteria()

    @property
    def active_filter_count(self) -> int:
        return count_active_filters(self._criteria)

    def effective_criteria(self) -> FilterCriteria:
        """Filter criteria with the current search term merged in."""
        return replace(self._criteria, search=self._search)

    # ------------------------------------------------------------------
    # Derived view
    # ------------------------------------------------------------------

    def visible_contacts(self) -> list[Contact]:
        return filter_contacts(self._contacts, self.effective_criteria())

    def summary(self) -> dict[str, int]:
        return {"visible": len(self.visible_contacts()), "total": len(self._contacts)}
