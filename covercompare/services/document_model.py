"""
Editable document model for one comparison session.

Holds a live ComparisonSession and, while editing, a draft copy that every
mutation applies to.  ``commit()`` promotes the draft to the live document
and returns it for the host to persist; ``discard()`` drops the draft so the
live document is exactly what it was before ``enter_edit()``.

Every structural edit keeps ``len(item.values) == len(providers)`` for every
row of every category.  All operations validate their arguments before
touching the draft, so a failed call leaves the draft unchanged.

Public API
----------
ComparisonDocumentModel(session)
    .enter_edit() / .commit() -> ComparisonSession / .discard()
    .set_profile_field / .set_provider_field / .set_document_field
    .add_provider / .remove_provider
    .add_category / .remove_category / .set_category_title / .set_category_notes
    .add_row / .remove_row / .set_row_label / .set_row_value
    .has_validation_issues() / .validation_issues()
check_invariants(session)
"""
from __future__ import annotations

import enum
import logging
from typing import Iterator, List, Optional, Sequence, Union

from covercompare.exceptions import (
    AlreadyEditing,
    IndexOutOfRange,
    InvalidEnumValue,
    InvalidFieldValue,
    InvariantViolation,
    NotInEditMode,
    UnknownField,
)
from covercompare.models.comparison import (
    BenefitCategory,
    BenefitItem,
    ClientProfile,
    ComparisonSession,
    PlanType,
    Provider,
)

logger = logging.getLogger(__name__)


class EditState(str, enum.Enum):
    """Draft lifecycle states."""

    VIEWING = "viewing"
    EDITING = "editing"


def check_invariants(session: ComparisonSession) -> None:
    """Raise InvariantViolation if any row is out of sync with the providers."""
    expected = len(session.providers)
    for cat_idx, category in enumerate(session.categories):
        for item_idx, item in enumerate(category.items):
            if len(item.values) != expected:
                raise InvariantViolation(
                    f"categories[{cat_idx}].items[{item_idx}] has "
                    f"{len(item.values)} values but there are {expected} providers"
                )


def _check_text(field: str, value: object, nullable: bool = False) -> None:
    if value is None and nullable:
        return
    if not isinstance(value, str):
        raise InvalidFieldValue(field, value)


def _check_index(kind: str, index: int, items: Sequence) -> int:
    # Negative indices are rejected rather than wrapped.
    if not 0 <= index < len(items):
        raise IndexOutOfRange(kind, index, len(items))
    return index


class ComparisonDocumentModel:
    """
    One comparison document plus its draft/commit/discard lifecycle.

    The model is synchronous and owns no external resources.  It never
    reads configuration or talks to storage: the host loads a session,
    hands it in, and persists whatever ``commit()`` returns.
    """

    NEW_PROVIDER_UNDERWRITER: str = "New Underwriter"
    NEW_PROVIDER_PLAN: str = "New Plan"
    NEW_CATEGORY_TITLE: str = "New Benefit Section"
    NEW_CATEGORY_ROW_LABEL: str = "Benefit Item"
    NEW_ROW_LABEL: str = "New Benefit"

    PROFILE_FIELDS = frozenset(ClientProfile.model_fields)
    PROVIDER_FIELDS = frozenset({"underwriter", "plan"})
    DOCUMENT_FIELDS = frozenset({"name", "date", "type", "report_title_override"})

    def __init__(self, session: ComparisonSession) -> None:
        check_invariants(session)
        self._live = session.model_copy(deep=True)
        self._draft: Optional[ComparisonSession] = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> EditState:
        return EditState.EDITING if self._draft is not None else EditState.VIEWING

    @property
    def is_editing(self) -> bool:
        return self._draft is not None

    @property
    def document_id(self) -> str:
        return self._live.id

    @property
    def document(self) -> ComparisonSession:
        """Copy of the live (committed) document."""
        return self._live.model_copy(deep=True)

    @property
    def current(self) -> ComparisonSession:
        """Copy of the draft while editing, otherwise of the live document."""
        return self._current().model_copy(deep=True)

    def _current(self) -> ComparisonSession:
        return self._draft if self._draft is not None else self._live

    def _require_draft(self, operation: str) -> ComparisonSession:
        if self._draft is None:
            raise NotInEditMode(operation)
        return self._draft

    # ------------------------------------------------------------------
    # Draft lifecycle
    # ------------------------------------------------------------------

    def enter_edit(self) -> None:
        """Snapshot the live document into a draft.  Raises AlreadyEditing."""
        if self._draft is not None:
            raise AlreadyEditing(self._live.id)
        self._draft = self._live.model_copy(deep=True)
        logger.debug("Entered edit mode for comparison %r", self._live.id)

    def commit(self) -> ComparisonSession:
        """
        Replace the live document with the draft and return it.

        Validation issues (empty names/labels) never block a commit; they are
        advisory only.
        """
        draft = self._require_draft("commit")
        check_invariants(draft)
        self._live = draft
        self._draft = None
        logger.debug("Committed draft for comparison %r", self._live.id)
        return self._live.model_copy(deep=True)

    def discard(self) -> None:
        """Drop the draft; the live document is left untouched."""
        self._require_draft("discard")
        self._draft = None
        logger.debug("Discarded draft for comparison %r", self._live.id)

    # ------------------------------------------------------------------
    # Field edits
    # ------------------------------------------------------------------

    def set_profile_field(self, key: str, value: str) -> None:
        draft = self._require_draft("set_profile_field")
        if key not in self.PROFILE_FIELDS:
            raise UnknownField("ClientProfile", key)
        _check_text(key, value)
        setattr(draft.client_profile, key, value)

    def set_provider_field(self, index: int, key: str, value: str) -> None:
        draft = self._require_draft("set_provider_field")
        _check_index("provider", index, draft.providers)
        if key not in self.PROVIDER_FIELDS:
            raise UnknownField("Provider", key)
        _check_text(key, value)
        setattr(draft.providers[index], key, value)

    def set_document_field(self, key: str, value: Union[str, PlanType, None]) -> None:
        """
        Set ``name``, ``date``, ``type`` or ``report_title_override``.

        Only ``report_title_override`` may be cleared with None.
        """
        draft = self._require_draft("set_document_field")
        if key not in self.DOCUMENT_FIELDS:
            raise UnknownField("ComparisonSession", key)
        if key == "type":
            value = self._coerce_plan_type(value)
        else:
            _check_text(key, value, nullable=key == "report_title_override")
        setattr(draft, key, value)

    @staticmethod
    def _coerce_plan_type(value: object) -> PlanType:
        if isinstance(value, PlanType):
            return value
        try:
            return PlanType(value)
        except ValueError:
            raise InvalidEnumValue("type", value, [t.value for t in PlanType]) from None

    # ------------------------------------------------------------------
    # Providers
    # ------------------------------------------------------------------

    def add_provider(self) -> None:
        """Append a placeholder provider and an empty value to every row."""
        draft = self._require_draft("add_provider")
        draft.providers.append(
            Provider(
                underwriter=self.NEW_PROVIDER_UNDERWRITER,
                plan=self.NEW_PROVIDER_PLAN,
            )
        )
        for item in self._iter_items(draft):
            item.values.append("")

    def remove_provider(self, index: int) -> None:
        """
        Remove the provider column at *index* and its value in every row.

        A document always keeps at least one provider: removing the last one
        is silently ignored.
        """
        draft = self._require_draft("remove_provider")
        _check_index("provider", index, draft.providers)
        if len(draft.providers) == 1:
            logger.debug("remove_provider: keeping the only provider of %r", draft.id)
            return
        del draft.providers[index]
        for item in self._iter_items(draft):
            del item.values[index]

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def set_category_title(self, cat_index: int, title: str) -> None:
        draft = self._require_draft("set_category_title")
        _check_text("title", title)
        self._category(draft, cat_index).title = title

    def set_category_notes(self, cat_index: int, notes: Optional[str]) -> None:
        draft = self._require_draft("set_category_notes")
        _check_text("notes", notes, nullable=True)
        self._category(draft, cat_index).notes = notes

    def add_category(self) -> None:
        draft = self._require_draft("add_category")
        draft.categories.append(
            BenefitCategory(
                title=self.NEW_CATEGORY_TITLE,
                items=[self._blank_row(draft, self.NEW_CATEGORY_ROW_LABEL)],
            )
        )

    def remove_category(self, cat_index: int) -> None:
        # Confirmation is the host's job.
        draft = self._require_draft("remove_category")
        _check_index("category", cat_index, draft.categories)
        del draft.categories[cat_index]

    # ------------------------------------------------------------------
    # Rows
    # ------------------------------------------------------------------

    def add_row(self, cat_index: int) -> None:
        draft = self._require_draft("add_row")
        category = self._category(draft, cat_index)
        category.items.append(self._blank_row(draft, self.NEW_ROW_LABEL))

    def remove_row(self, cat_index: int, item_index: int) -> None:
        draft = self._require_draft("remove_row")
        category = self._category(draft, cat_index)
        _check_index("item", item_index, category.items)
        del category.items[item_index]

    def set_row_label(self, cat_index: int, item_index: int, label: str) -> None:
        draft = self._require_draft("set_row_label")
        _check_text("label", label)
        self._item(draft, cat_index, item_index).label = label

    def set_row_value(
        self,
        cat_index: int,
        item_index: int,
        provider_index: int,
        value: str,
    ) -> None:
        draft = self._require_draft("set_row_value")
        _check_text("value", value)
        item = self._item(draft, cat_index, item_index)
        _check_index("provider", provider_index, draft.providers)
        item.values[provider_index] = value

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validation_issues(self) -> List[str]:
        """
        Paths of empty provider names and row labels in the current document.

        Advisory only: the host highlights these fields, nothing is blocked.
        """
        session = self._current()
        issues: List[str] = []
        for idx, provider in enumerate(session.providers):
            if not provider.underwriter:
                issues.append(f"providers[{idx}].underwriter")
            if not provider.plan:
                issues.append(f"providers[{idx}].plan")
        for cat_idx, category in enumerate(session.categories):
            for item_idx, item in enumerate(category.items):
                if not item.label:
                    issues.append(f"categories[{cat_idx}].items[{item_idx}].label")
        return issues

    def has_validation_issues(self) -> bool:
        return bool(self.validation_issues())

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _iter_items(session: ComparisonSession) -> Iterator[BenefitItem]:
        for category in session.categories:
            yield from category.items

    @staticmethod
    def _blank_row(session: ComparisonSession, label: str) -> BenefitItem:
        return BenefitItem(label=label, values=[""] * len(session.providers))

    @staticmethod
    def _category(session: ComparisonSession, cat_index: int) -> BenefitCategory:
        return session.categories[_check_index("category", cat_index, session.categories)]

    def _item(
        self,
        session: ComparisonSession,
        cat_index: int,
        item_index: int,
    ) -> BenefitItem:
        category = self._category(session, cat_index)
        return category.items[_check_index("item", item_index, category.items)]
