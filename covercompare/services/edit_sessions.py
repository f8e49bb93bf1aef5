"""
Open drafts, keyed by (admin id, comparison id).

A draft outlives the request that opened it, so the host keeps one
ComparisonDocumentModel per editor and comparison until the draft is
committed or discarded.  The registry is process-local; two admins editing
the same comparison each get their own draft and the last commit wins.
Drafts left idle longer than DRAFT_IDLE_TIMEOUT are dropped.
"""
import logging
import time
from typing import Callable, Dict, Optional, Tuple

from covercompare.config import settings
from covercompare.exceptions import AlreadyEditing, NotInEditMode
from covercompare.models.comparison import ComparisonSession
from covercompare.models.schemas import (
    AddCategoryOp,
    AddProviderOp,
    AddRowOp,
    EditOperation,
    RemoveCategoryOp,
    RemoveProviderOp,
    RemoveRowOp,
    SetCategoryNotesOp,
    SetCategoryTitleOp,
    SetDocumentFieldOp,
    SetProfileFieldOp,
    SetProviderFieldOp,
    SetRowLabelOp,
    SetRowValueOp,
)
from covercompare.services.document_model import ComparisonDocumentModel

logger = logging.getLogger(__name__)

DraftKey = Tuple[str, str]


class EditSessionRegistry:
    """In-memory map of open drafts."""

    def __init__(
        self,
        idle_timeout: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.idle_timeout = idle_timeout
        self._clock = clock
        self._models: Dict[DraftKey, ComparisonDocumentModel] = {}
        self._touched: Dict[DraftKey, float] = {}

    def __len__(self) -> int:
        return len(self._models)

    def is_open(self, editor_id: str, comparison_id: str) -> bool:
        self.expire_idle()
        return (editor_id, comparison_id) in self._models

    def open(self, editor_id: str, session: ComparisonSession) -> ComparisonDocumentModel:
        """Wrap *session* in a model and enter edit mode."""
        self.expire_idle()
        key = (editor_id, session.id)
        if key in self._models:
            raise AlreadyEditing(session.id)
        model = ComparisonDocumentModel(session)
        model.enter_edit()
        self._models[key] = model
        self._touched[key] = self._clock()
        logger.info("Opened draft of comparison %s for %s", session.id, editor_id)
        return model

    def get(self, editor_id: str, comparison_id: str) -> ComparisonDocumentModel:
        self.expire_idle()
        key = (editor_id, comparison_id)
        model = self._models.get(key)
        if model is None:
            raise NotInEditMode("draft")
        self._touched[key] = self._clock()
        return model

    def close(self, editor_id: str, comparison_id: str) -> None:
        key = (editor_id, comparison_id)
        self._models.pop(key, None)
        self._touched.pop(key, None)

    def close_comparison(self, comparison_id: str) -> int:
        """Drop every draft of a comparison (after it has been deleted)."""
        keys = [key for key in self._models if key[1] == comparison_id]
        for key in keys:
            self.close(*key)
        return len(keys)

    def expire_idle(self) -> int:
        """Drop drafts untouched for longer than ``idle_timeout`` seconds."""
        if not self.idle_timeout:
            return 0
        cutoff = self._clock() - self.idle_timeout
        stale = [key for key, touched in self._touched.items() if touched < cutoff]
        for key in stale:
            self.close(*key)
            logger.info("Dropped idle draft of comparison %s for %s", key[1], key[0])
        return len(stale)

    def clear(self) -> None:
        self._models.clear()
        self._touched.clear()


def apply_operation(model: ComparisonDocumentModel, operation: EditOperation) -> None:
    """Dispatch one typed edit operation to the matching model method."""
    if isinstance(operation, SetProfileFieldOp):
        model.set_profile_field(operation.key, operation.value)
    elif isinstance(operation, SetProviderFieldOp):
        model.set_provider_field(operation.index, operation.key, operation.value)
    elif isinstance(operation, AddProviderOp):
        model.add_provider()
    elif isinstance(operation, RemoveProviderOp):
        model.remove_provider(operation.index)
    elif isinstance(operation, SetCategoryTitleOp):
        model.set_category_title(operation.cat_index, operation.title)
    elif isinstance(operation, SetCategoryNotesOp):
        model.set_category_notes(operation.cat_index, operation.notes)
    elif isinstance(operation, AddCategoryOp):
        model.add_category()
    elif isinstance(operation, RemoveCategoryOp):
        model.remove_category(operation.cat_index)
    elif isinstance(operation, AddRowOp):
        model.add_row(operation.cat_index)
    elif isinstance(operation, RemoveRowOp):
        model.remove_row(operation.cat_index, operation.item_index)
    elif isinstance(operation, SetRowLabelOp):
        model.set_row_label(operation.cat_index, operation.item_index, operation.label)
    elif isinstance(operation, SetRowValueOp):
        model.set_row_value(
            operation.cat_index,
            operation.item_index,
            operation.provider_index,
            operation.value,
        )
    elif isinstance(operation, SetDocumentFieldOp):
        model.set_document_field(operation.key, operation.value)
    else:
        raise TypeError(f"Unsupported edit operation: {operation!r}")


# Shared registry for the running application
edit_sessions = EditSessionRegistry(idle_timeout=settings.DRAFT_IDLE_TIMEOUT)
