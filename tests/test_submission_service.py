import os
import sys
import asyncio
import datetime
import threading

import pytest
import requests

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from db import PendingWorkoutRepository
from delta_detector import LevelUp, PlainComplete, QuestComplete, Snapshot
from gamification_service import RewardCalculator
from library_service import ExerciseLibrary
from models import CharacterProfile, CompletedExerciseRecord, Quest, UserStats
from submission_service import (
    SubmissionError,
    SubmissionOrchestrator,
    SubmissionValidationError,
)

LIBRARY = ExerciseLibrary([{"id": "squat", "name": "Squat", "category": "strength"}])
RECORDS = [CompletedExerciseRecord(id="squat", sets=3, reps=30, weight=100.0)]


def quest(qid: int, status: str) -> Quest:
    return Quest(id=qid, name=f"Quest {qid}", status=status, number_of_workouts_needed=2)


class FakeClient:
    def __init__(self, level_after: int = 3, quests_after=None, fail_persist: int = 0) -> None:
        self.level_after = level_after
        self.quests_after = quests_after or []
        self.fail_persist = fail_persist
        self.recorded = []
        self.calls = []
        self._lock = threading.Lock()

    def record_workout(self, session) -> None:
        with self._lock:
            self.calls.append("record")
        if self.fail_persist:
            self.fail_persist -= 1
            raise requests.exceptions.ConnectionError("offline")
        self.recorded.append(session.to_payload())

    def get_character(self) -> CharacterProfile:
        with self._lock:
            self.calls.append("character")
        return CharacterProfile(level=self.level_after)

    def get_quests(self) -> list[Quest]:
        with self._lock:
            self.calls.append("quests")
        return list(self.quests_after)


def make(client, pending=None) -> SubmissionOrchestrator:
    return SubmissionOrchestrator(client, RewardCalculator(LIBRARY), pending)


def test_build_session_golden_values():
    orch = make(FakeClient())
    session = orch.build_session(
        "Leg Day", RECORDS, 30, UserStats(strength=50), today=datetime.date(2024, 5, 1)
    )
    assert session.points == 176
    assert session.coins == 40
    assert session.to_payload() == {
        "name": "Leg Day",
        "exercises": [{"id": "squat", "sets": 3, "reps": 30, "weight": 100.0, "distance": 0.0}],
        "date": "2024-05-01",
        "duration": 30,
        "points": 176,
        "coins": 40,
    }


def test_build_session_default_name():
    session = make(FakeClient()).build_session(None, RECORDS, 10, UserStats())
    assert session.name == "Workout Session"
    assert session.date == datetime.date.today()


@pytest.mark.parametrize("duration,records", [(0, RECORDS), (-5, RECORDS), (30, [])])
def test_build_session_validation(duration, records):
    with pytest.raises(SubmissionValidationError):
        make(FakeClient()).build_session("x", records, duration, UserStats())


@pytest.mark.asyncio
async def test_submit_detects_level_up():
    client = FakeClient(level_after=4, quests_after=[quest(1, "Complete")])
    orch = make(client)
    session = orch.build_session("x", RECORDS, 30, UserStats())
    before = Snapshot.capture(3, [quest(1, "Incomplete")])
    result = await orch.submit(session, before)
    assert isinstance(result.outcome, LevelUp)
    assert result.next_screen == "level_up"
    assert client.calls[0] == "record"
    assert sorted(client.calls[1:]) == ["character", "quests"]


@pytest.mark.asyncio
async def test_submit_detects_quest_completion():
    client = FakeClient(level_after=3, quests_after=[quest(1, "Complete"), quest(2, "Incomplete")])
    orch = make(client)
    result = await orch.complete_workout(
        "x",
        RECORDS,
        30,
        CharacterProfile(level=3),
        [quest(1, "Incomplete"), quest(2, "Incomplete")],
    )
    assert isinstance(result.outcome, QuestComplete)
    assert [q.id for q in result.outcome.quests] == [1]
    assert result.after.level == 3


@pytest.mark.asyncio
async def test_submit_plain_complete():
    client = FakeClient(level_after=3)
    orch = make(client)
    result = await orch.complete_workout("x", RECORDS, 30, CharacterProfile(level=3), [])
    assert isinstance(result.outcome, PlainComplete)
    assert result.next_screen == "workout_complete"


@pytest.mark.asyncio
async def test_validation_error_sends_nothing():
    client = FakeClient()
    with pytest.raises(SubmissionValidationError):
        await make(client).complete_workout("x", [], 30, CharacterProfile(), [])
    assert client.calls == []


@pytest.mark.asyncio
async def test_retry_resends_identical_payload(tmp_path):
    pending = PendingWorkoutRepository(str(tmp_path / "pending.db"))
    client = FakeClient(level_after=3, fail_persist=1)
    orch = make(client, pending)
    session = orch.build_session("x", RECORDS, 45, UserStats(strength=5))
    before = Snapshot.capture(3, [])

    with pytest.raises(SubmissionError) as excinfo:
        await orch.submit(session, before)
    error = excinfo.value
    assert error.session is session
    assert client.calls == ["record"]
    parked = pending.fetch_all_pending()
    assert len(parked) == 1
    assert parked[0][1] == session.to_payload()

    result = await orch.retry(error, before)
    assert isinstance(result.outcome, PlainComplete)
    assert client.recorded == [session.to_payload()]
    assert pending.fetch_all_pending() == []


@pytest.mark.asyncio
async def test_repeated_failure_counts_attempts(tmp_path):
    pending = PendingWorkoutRepository(str(tmp_path / "pending.db"))
    client = FakeClient(fail_persist=2)
    orch = make(client, pending)
    session = orch.build_session("x", RECORDS, 20, UserStats())
    before = Snapshot.capture(1, [])
    with pytest.raises(SubmissionError) as first:
        await orch.submit(session, before)
    with pytest.raises(SubmissionError):
        await orch.retry(first.value, before)
    parked = pending.fetch_all_pending()
    assert len(parked) == 1
    assert parked[0][2] == 2


@pytest.mark.asyncio
async def test_refresh_failure_degrades_to_plain_complete():
    class RefreshFails(FakeClient):
        def get_quests(self):
            raise requests.exceptions.Timeout("slow")

    client = RefreshFails(level_after=9)
    orch = make(client)
    session = orch.build_session("x", RECORDS, 30, UserStats())
    result = await orch.submit(session, Snapshot(level=1))
    assert isinstance(result.outcome, PlainComplete)
    assert result.after is None
    assert len(client.recorded) == 1


@pytest.mark.asyncio
async def test_refetches_run_concurrently():
    barrier = threading.Barrier(2, timeout=5)

    class Concurrent(FakeClient):
        def get_character(self):
            barrier.wait()
            return super().get_character()

        def get_quests(self):
            barrier.wait()
            return super().get_quests()

    orch = make(Concurrent(level_after=2))
    session = orch.build_session("x", RECORDS, 30, UserStats())
    result = await asyncio.wait_for(orch.submit(session, Snapshot(level=1)), timeout=10)
    assert isinstance(result.outcome, LevelUp)


@pytest.mark.asyncio
async def test_malformed_refresh_degrades_to_plain_complete():
    class MalformedQuests(FakeClient):
        def get_quests(self):
            super().get_quests()
            return [Quest.model_validate({"id": None, "status": "Complete"})]

    client = MalformedQuests(level_after=9)
    orch = make(client)
    session = orch.build_session("x", RECORDS, 30, UserStats())
    result = await orch.submit(session, Snapshot(level=1))
    assert isinstance(result.outcome, PlainComplete)
    assert result.after is None
    assert client.recorded == [session.to_payload()]
