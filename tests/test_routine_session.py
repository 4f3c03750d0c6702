import os
import sys
import json
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from library_service import ExerciseLibrary
from routine_session import RoutineExercise, RoutineSession, parse_routine_exercises

LIBRARY = [
    {"id": "Barbell_Squat", "name": "Barbell Squat", "category": "strength", "equipment": "barbell"},
    {"id": "Jogging", "name": "Jogging", "category": "cardio", "equipment": None},
    {"id": "Child_Pose", "name": "Child's Pose", "category": "stretching", "equipment": None},
]


class ParseRoutineTest(unittest.TestCase):
    def setUp(self) -> None:
        self.library = ExerciseLibrary(LIBRARY)

    def test_objects(self) -> None:
        raw = json.dumps([{"id": 7, "name": "Squat"}, {"id": "Jogging"}])
        parsed = parse_routine_exercises(raw)
        self.assertEqual(parsed, [RoutineExercise(id=7, name="Squat"), RoutineExercise(id="Jogging")])

    def test_names_resolved_through_library(self) -> None:
        parsed = parse_routine_exercises(["barbell squat", "Unknown Move"], self.library)
        self.assertEqual(parsed[0].id, "Barbell_Squat")
        self.assertEqual(parsed[1].id, "Unknown Move")

    def test_malformed_degrades_to_empty(self) -> None:
        self.assertEqual(parse_routine_exercises("{not json"), [])
        self.assertEqual(parse_routine_exercises('{"id": 1}'), [])
        self.assertEqual(parse_routine_exercises([]), [])
        self.assertEqual(parse_routine_exercises([1, 2]), [])
        self.assertEqual(parse_routine_exercises(None), [])


class RoutineSessionTest(unittest.TestCase):
    def setUp(self) -> None:
        self.library = ExerciseLibrary(LIBRARY)
        self.session = RoutineSession(
            [
                RoutineExercise(id="Barbell_Squat", name="Barbell Squat"),
                RoutineExercise(id="Jogging", name="Jogging"),
                RoutineExercise(id="Child_Pose", name="Child's Pose"),
            ],
            self.library,
        )

    def test_walk_through_routine(self) -> None:
        store = self.session.store
        store.update_set(0, 0, "reps", "5")
        store.update_set(0, 0, "weight", "100")
        store.add_set(0)
        self.assertIsNone(self.session.next())
        self.assertEqual(self.session.current_kind(), "cardio")
        store.update_set(1, 0, "distance", "3")
        self.assertIsNone(self.session.next())
        store.update_set(2, 0, "reps", "1")
        records = self.session.next()
        self.assertTrue(self.session.finished)
        self.assertEqual([r.id for r in records], ["Barbell_Squat", "Jogging", "Child_Pose"])
        self.assertEqual(records[0].sets, 1)
        self.assertEqual(records[1].distance, 3.0)

    def test_leaving_exercise_drops_empty_rows(self) -> None:
        self.session.store.update_set(0, 0, "reps", "5")
        self.session.store.add_set(0)
        self.session.next()
        self.assertEqual(len(self.session.store.get_sets(0)), 1)

    def test_previous_finalizes_and_moves_back(self) -> None:
        self.session.next()
        self.session.store.update_set(1, 0, "distance", "2")
        self.session.previous()
        self.assertEqual(self.session.position, 0)
        self.assertEqual(self.session.finalizer.record(1).distance, 2.0)
        self.session.previous()
        self.assertEqual(self.session.position, 0)

    def test_revisit_overwrites_record(self) -> None:
        self.session.store.update_set(0, 0, "reps", "5")
        self.session.next()
        self.session.previous()
        self.session.store.update_set(0, 0, "reps", "8")
        records = self.session.end()
        self.assertEqual(records[0].reps, 8)
        self.assertEqual(len(records), 2)

    def test_unknown_exercise_is_other(self) -> None:
        session = RoutineSession([RoutineExercise(id="mystery")], self.library)
        self.assertEqual(session.current_kind(), "other")

    def test_cancel_discards_progress(self) -> None:
        self.session.store.update_set(0, 0, "reps", "5")
        self.session.next()
        self.session.cancel()
        self.assertEqual(self.session.finalizer.completed_exercises(), [])
        self.assertEqual(self.session.store.positions(), [])

    def test_empty_routine(self) -> None:
        session = RoutineSession([], self.library)
        self.assertIsNone(session.current)
        self.assertEqual(session.next(), [])

    def test_start_index_clamped(self) -> None:
        session = RoutineSession(self.session.exercises, self.library, start_index=10)
        self.assertEqual(session.position, 2)


if __name__ == "__main__":
    unittest.main()
