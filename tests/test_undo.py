import os
import json
import tempfile
import unittest

from houseplan.models import Mode, Point, Line, Annotation
from houseplan.store import EntityStore
from houseplan.undo import UndoManager


def line(i):
    return Line(id=f"l{i}", start=Point(0.0, 0.0), end=Point(10.0 * (i + 1), 0.0), name=f"Line {i}")


class UndoRedoTests(unittest.TestCase):
    def setUp(self):
        self.store = EntityStore()
        self.history = UndoManager(self.store)

    def test_empty_stacks_are_noops(self):
        self.assertFalse(self.history.can_undo())
        self.assertFalse(self.history.can_redo())
        self.assertFalse(self.history.undo())
        self.assertFalse(self.history.redo())

    def test_n_undos_then_n_redos(self):
        initial = self.store.snapshot()
        states = []
        for i in range(4):
            self.store.add_line(line(i))
            states.append(self.store.snapshot())
        for _ in range(4):
            self.assertTrue(self.history.undo())
        self.assertEqual(self.store.snapshot(), initial)
        self.assertFalse(self.history.can_undo())
        for expected in states:
            self.assertTrue(self.history.redo())
            self.assertEqual(self.store.snapshot(), expected)
        self.assertFalse(self.history.can_redo())

    def test_new_commit_clears_redo(self):
        self.store.add_line(line(0))
        self.history.undo()
        self.assertTrue(self.history.can_redo())
        self.store.add_line(line(1))
        self.assertFalse(self.history.can_redo())

    def test_restore_records_nothing(self):
        self.store.add_line(line(0))
        self.store.add_line(line(1))
        self.history.undo()
        self.assertEqual(self.history.depth, 1)

    def test_history_is_bounded(self):
        history = UndoManager(EntityStore(), limit=3)
        for i in range(5):
            history.store.add_line(line(i))
        self.assertEqual(history.depth, 3)
        while history.undo():
            pass
        self.assertEqual([l.id for l in history.store.lines], ["l0", "l1"])

    def test_default_limit(self):
        for i in range(105):
            self.store.add_annotation(Annotation(id=f"a{i}"))
        self.assertEqual(self.history.depth, 100)

    def test_mode_and_selection_not_recorded(self):
        self.store.set_calibration(10, "m", [], [])
        self.store.add_line(line(0))
        depth = self.history.depth
        self.store.set_mode(Mode.MEASURE)
        self.store.select("l0")
        self.assertEqual(self.history.depth, depth)

    def test_undo_drops_stale_selection(self):
        self.store.add_line(line(0))
        self.store.select("l0")
        self.history.undo()
        self.assertIsNone(self.store.selected_id)

    def test_undoing_calibration_leaves_gated_mode(self):
        self.store.set_calibration(10, "m", [], [])
        self.store.set_mode(Mode.AREA)
        self.history.undo()
        self.assertIsNone(self.store.scale)
        self.assertEqual(self.store.mode, Mode.VIEW)

    def test_clear(self):
        self.store.add_line(line(0))
        self.history.clear()
        self.assertFalse(self.history.can_undo())

    def test_history_changed_signal(self):
        calls = []
        self.history.historyChanged.connect(lambda: calls.append(1))
        self.store.add_line(line(0))
        self.history.undo()
        self.assertEqual(len(calls), 2)


class AutosaveTests(unittest.TestCase):
    def test_commit_writes_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "autosave.json")
            store = EntityStore()
            history = UndoManager(store, autosave_path=path)
            store.add_line(line(0))
            self.assertEqual(history.depth, 1)
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            self.assertEqual([l["id"] for l in data["lines"]], ["l0"])

    def test_unwritable_path_is_logged(self):
        store = EntityStore()
        history = UndoManager(store, autosave_path=os.path.join(tempfile.gettempdir(), "missing-dir", "x", "a.json"))
        with self.assertLogs("houseplan.undo", level="WARNING"):
            store.add_line(line(0))
        self.assertEqual(len(store.lines), 1)
        self.assertTrue(history.can_undo())


if __name__ == "__main__":
    unittest.main()
