import json
import os
import tempfile
import unittest

from houseplan.errors import ProjectFormatError
from houseplan.models import Point, Line, Polygon, FurnitureItem, Annotation
from houseplan.state import ProjectState, migrate_furniture_record
from houseplan.store import EntityStore
from houseplan.undo import UndoManager

PROJECT = {
    "lines": [{"id": "l1", "start": {"x": 0, "y": 0}, "end": {"x": 100, "y": 0},
               "name": "Wall", "color": "#ef4444", "length": 2.0, "unit": "m"}],
    "polygons": [{"id": "p1", "points": [{"x": 0, "y": 0}, {"x": 50, "y": 0}, {"x": 50, "y": 50}],
                  "name": "Kitchen", "color": "#10b981", "area": 0.5, "unit": "sq m"}],
    "furniture": [{"id": "f1", "templateId": "fridge", "name": "Fridge", "width": 0.7, "depth": 0.7,
                   "x": 10, "y": 20, "rotation": 90, "color": "#e5e5e5"}],
    "annotations": [{"id": "a1", "text": "Entrée", "x": 5, "y": 6, "fontSize": 18,
                     "color": "#1e293b", "backgroundColor": None, "rotation": 0}],
    "scale": 50,
    "unit": "m",
}


class MigrationTests(unittest.TestCase):
    def test_legacy_types(self):
        cases = {"bed": "bed-queen", "sofa": "sofa-3seat", "table": "dining-table-4",
                 "toilet": "desk-small", "custom": "custom", "piano": "custom"}
        for legacy, expected in cases.items():
            rec = migrate_furniture_record({"id": "f", "type": legacy, "width": 1, "depth": 2})
            self.assertEqual(rec["templateId"], expected, msg=legacy)
            self.assertNotIn("type", rec)
            self.assertEqual((rec["width"], rec["depth"]), (1, 2))

    def test_current_records_untouched(self):
        rec = {"id": "f", "templateId": "fridge"}
        self.assertIs(migrate_furniture_record(rec), rec)

    def test_legacy_sofa_loads(self):
        store = EntityStore()
        store.state.deserialize(store, {"furniture": [{"id": "f1", "type": "sofa", "name": "Old sofa",
                                                       "width": 2.0, "depth": 0.9, "x": 1, "y": 2}]})
        item = store.furniture[0]
        self.assertEqual(item.template_id, "sofa-3seat")
        self.assertEqual(item.name, "Old sofa")
        self.assertEqual((item.x, item.y), (1, 2))


class ParseTests(unittest.TestCase):
    def setUp(self):
        self.state = ProjectState()

    def test_full_project(self):
        project = self.state.parse(PROJECT)
        self.assertEqual(project.scale, 50)
        self.assertEqual(project.lines[0].start, Point(0, 0))
        self.assertEqual(project.polygons[0].area, 0.5)
        self.assertEqual(project.furniture[0].rotation, 90)
        self.assertEqual(project.annotations[0].font_size, 18)
        self.assertIsNone(project.annotations[0].background_color)

    def test_missing_fields_default(self):
        project = self.state.parse({})
        self.assertEqual((project.lines, project.polygons, project.furniture, project.annotations),
                         ([], [], [], []))
        self.assertIsNone(project.scale)
        self.assertEqual(project.unit, "m")

    def test_non_positive_scale_is_uncalibrated(self):
        self.assertIsNone(self.state.parse({"scale": 0}).scale)
        self.assertIsNone(self.state.parse({"scale": -4}).scale)

    def test_malformed(self):
        bad = [
            [],
            {"lines": "nope"},
            {"lines": [{"id": "l1", "start": {"x": 0}, "end": {"x": 1, "y": 1}}]},
            {"polygons": [{"id": "p1", "points": None}]},
            {"furniture": [{"id": "f1", "templateId": "x", "width": "wide", "depth": 1}]},
            {"annotations": [{"text": "no id"}]},
            {"scale": "big"},
            {"lines": [{"id": "x", "start": {"x": 0, "y": 0}, "end": {"x": 1, "y": 1}}],
             "annotations": [{"id": "x"}]},
        ]
        for data in bad:
            with self.assertRaises(ProjectFormatError, msg=repr(data)):
                self.state.parse(data)


class LoadTests(unittest.TestCase):
    def setUp(self):
        self.store = EntityStore()
        self.store.add_annotation(Annotation(id="keep", text="Existing"))

    def test_malformed_input_leaves_store_untouched(self):
        before = self.store.snapshot()
        with self.assertRaises(ProjectFormatError):
            self.store.state.loads(self.store, "{not json")
        with self.assertRaises(ProjectFormatError):
            self.store.state.deserialize(self.store, {"lines": [{"id": "l1"}]})
        self.assertEqual(self.store.snapshot(), before)

    def test_load_is_one_undo_step(self):
        history = UndoManager(self.store)
        self.store.state.deserialize(self.store, PROJECT)
        self.assertEqual(history.depth, 1)
        self.assertEqual(self.store.scale, 50)
        self.assertEqual(self.store.kind_of("f1"), "furniture")
        history.undo()
        self.assertEqual([a.id for a in self.store.annotations], ["keep"])
        self.assertIsNone(self.store.scale)


class SerializeTests(unittest.TestCase):
    def setUp(self):
        self.store = EntityStore()

    def test_optional_fields_omitted(self):
        self.store.add_line(Line(id="ref", start=Point(0, 0), end=Point(10, 0), name="Reference"))
        self.store.add_polygon(Polygon(id="p", points=[Point(0, 0), Point(1, 0), Point(1, 1)]))
        data = self.store.state.serialize(self.store)
        self.assertNotIn("length", data["lines"][0])
        self.assertNotIn("unit", data["lines"][0])
        self.assertNotIn("area", data["polygons"][0])
        self.assertIsNone(data["scale"])
        self.assertEqual(data["unit"], "m")

    def test_camel_case_keys(self):
        self.store.add_furniture(FurnitureItem("f1", "fridge", "Fridge", 0.7, 0.7))
        self.store.add_annotation(Annotation(id="a1", background_color="#ffffff"))
        data = self.store.state.serialize(self.store)
        self.assertEqual(data["furniture"][0]["templateId"], "fridge")
        self.assertEqual(data["annotations"][0]["fontSize"], 14)
        self.assertEqual(data["annotations"][0]["backgroundColor"], "#ffffff")

    def test_dumps_keeps_unicode(self):
        self.store.add_annotation(Annotation(id="a1", text="Salón"))
        self.assertIn("Salón", self.store.state.dumps(self.store))


class FileTests(unittest.TestCase):
    def test_save_and_open(self):
        store = EntityStore()
        store.state.deserialize(store, PROJECT)
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "plan.json")
            store.state.save_project(store, path)
            with open(path, encoding="utf-8") as f:
                self.assertIn("Entrée", f.read())
            other = EntityStore()
            other.state.open_project(other, path)
        self.assertEqual(other.snapshot(), store.snapshot())

    def test_open_missing_file(self):
        store = EntityStore()
        with self.assertRaises(ProjectFormatError):
            store.state.open_project(store, os.path.join(tempfile.gettempdir(), "no-such-plan.json"))

    def test_open_not_json(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "plan.json")
            with open(path, "w", encoding="utf-8") as f:
                f.write(json.dumps([1, 2, 3]))
            store = EntityStore()
            with self.assertRaises(ProjectFormatError):
                store.state.open_project(store, path)


if __name__ == "__main__":
    unittest.main()
