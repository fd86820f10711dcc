from __future__ import annotations
import json, logging
from typing import Optional, List

from PySide6.QtCore import QObject, Signal

from .utils import HISTORY_LIMIT

log = logging.getLogger(__name__)


class UndoManager(QObject):
    """Snapshot history for an EntityStore.

    Listens to ``aboutToCommit`` so the pre-mutation snapshot of every commit
    lands on the undo stack. Undo/redo swap whole snapshots via
    ``store.restore``, which records nothing.
    """
    historyChanged = Signal()

    def __init__(self, store, limit: int = HISTORY_LIMIT, autosave_path: Optional[str] = None,
                 parent: Optional[QObject] = None):
        super().__init__(parent)
        self.store = store
        self.limit = limit
        self._undo_stack: List[str] = []
        self._redo_stack: List[str] = []
        self.autosave_path = autosave_path
        store.aboutToCommit.connect(self.push)
        store.changed.connect(self._autosave)

    def push(self, snapshot: str, label: str = "change"):
        self._undo_stack.append(snapshot)
        if len(self._undo_stack) > self.limit:
            del self._undo_stack[:len(self._undo_stack) - self.limit]
        self._redo_stack.clear()
        log.debug("history +%s (%d)", label, len(self._undo_stack))
        self.historyChanged.emit()

    def can_undo(self) -> bool:
        return bool(self._undo_stack)

    def can_redo(self) -> bool:
        return bool(self._redo_stack)

    @property
    def depth(self) -> int:
        return len(self._undo_stack)

    def undo(self) -> bool:
        if not self.can_undo():
            return False
        snap = self._undo_stack.pop()
        self._redo_stack.append(self.store.snapshot())
        self.store.restore(snap)
        self.historyChanged.emit()
        return True

    def redo(self) -> bool:
        if not self.can_redo():
            return False
        snap = self._redo_stack.pop()
        self._undo_stack.append(self.store.snapshot())
        self.store.restore(snap)
        self.historyChanged.emit()
        return True

    def clear(self):
        self._undo_stack.clear()
        self._redo_stack.clear()
        self.historyChanged.emit()

    def _autosave(self):
        if not self.autosave_path:
            return
        try:
            with open(self.autosave_path, "w", encoding="utf-8") as f:
                json.dump(self.store.state.serialize(self.store), f, ensure_ascii=False, indent=2)
        except OSError as e:
            log.warning("autosave to %s failed: %s", self.autosave_path, e)
