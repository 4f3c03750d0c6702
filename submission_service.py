"""Sequence a finished workout from rewards to outcome detection.

The flow is: build the payload (validated, rewards computed once), persist it,
refetch the character and quests concurrently and diff them against the
snapshot captured before persisting. A failed persist keeps the exact payload
so the same submission can be retried without recomputing anything.
"""

from __future__ import annotations

import asyncio
import datetime
import logging
from typing import Iterable, NamedTuple, Optional

import requests
from pydantic import ValidationError

from db import PendingWorkoutRepository
from delta_detector import Outcome, PlainComplete, Snapshot, detect
from gamification_service import RewardCalculator
from models import CharacterProfile, CompletedExerciseRecord, Quest, UserStats, WorkoutSession

logger = logging.getLogger(__name__)

DEFAULT_WORKOUT_NAME = "Workout Session"


class SubmissionValidationError(ValueError):
    """The workout cannot be submitted as entered."""


class SubmissionError(RuntimeError):
    """Persisting the workout failed; ``session`` can be retried unchanged."""

    def __init__(self, message: str, session: WorkoutSession, pending_id: int | None = None) -> None:
        super().__init__(message)
        self.session = session
        self.pending_id = pending_id


class SubmissionResult(NamedTuple):
    session: WorkoutSession
    outcome: Outcome
    before: Snapshot
    after: Optional[Snapshot]

    @property
    def next_screen(self) -> str:
        return self.outcome.next_screen


class SubmissionOrchestrator:
    """Persist workouts and work out which completion screen follows."""

    def __init__(
        self,
        client,
        calculator: RewardCalculator,
        pending: PendingWorkoutRepository | None = None,
    ) -> None:
        self.client = client
        self.calculator = calculator
        self.pending = pending

    def build_session(
        self,
        name: str | None,
        records: Iterable[CompletedExerciseRecord],
        duration_minutes: int,
        stats: UserStats,
        today: datetime.date | None = None,
    ) -> WorkoutSession:
        records = tuple(records)
        if duration_minutes is None or duration_minutes <= 0:
            raise SubmissionValidationError("Please select a workout duration")
        if not records:
            raise SubmissionValidationError("No exercise data to record")
        rewards = self.calculator.calculate(records, duration_minutes, stats)
        return WorkoutSession(
            name=name or DEFAULT_WORKOUT_NAME,
            exercises=records,
            date=today or datetime.date.today(),
            duration=int(duration_minutes),
            points=rewards.points,
            coins=rewards.coins,
        )

    @staticmethod
    def capture(profile: CharacterProfile | int, quests: Iterable[Quest | dict]) -> Snapshot:
        return Snapshot.capture(profile, quests)

    async def _persist(self, session: WorkoutSession, pending_id: int | None) -> None:
        try:
            await asyncio.to_thread(self.client.record_workout, session)
        except requests.exceptions.RequestException as exc:
            logger.error("Failed to record workout %r: %s", session.name, exc)
            if self.pending is not None:
                if pending_id is None:
                    pending_id = self.pending.add(session.to_payload(), str(exc))
                else:
                    self.pending.record_failure(pending_id, str(exc))
            raise SubmissionError(
                "Failed to record workout. Please try again.", session, pending_id
            ) from exc
        if self.pending is not None and pending_id is not None:
            self.pending.remove(pending_id)

    async def _refetch(self) -> Snapshot:
        profile, quests = await asyncio.gather(
            asyncio.to_thread(self.client.get_character),
            asyncio.to_thread(self.client.get_quests),
        )
        return Snapshot.capture(profile, quests)

    async def submit(
        self,
        session: WorkoutSession,
        before: Snapshot,
        pending_id: int | None = None,
    ) -> SubmissionResult:
        logger.info("Before workout - level: %s, quests: %s", before.level, len(before.quests))
        await self._persist(session, pending_id)
        try:
            after = await self._refetch()
        except (requests.exceptions.RequestException, ValidationError) as exc:
            logger.warning("Workout recorded but refresh failed: %s", exc)
            return SubmissionResult(session, PlainComplete(), before, None)
        logger.info("After workout - level: %s, quests: %s", after.level, len(after.quests))
        outcome = detect(before, after)
        logger.info("Workout outcome: %s", outcome.next_screen)
        return SubmissionResult(session, outcome, before, after)

    async def retry(self, error: SubmissionError, before: Snapshot) -> SubmissionResult:
        """Submit the payload of a failed attempt again, unchanged."""
        return await self.submit(error.session, before, error.pending_id)

    async def complete_workout(
        self,
        name: str | None,
        records: Iterable[CompletedExerciseRecord],
        duration_minutes: int,
        profile: CharacterProfile,
        quests: Iterable[Quest | dict],
    ) -> SubmissionResult:
        """Validate, price and submit a workout against the cached state."""
        session = self.build_session(name, records, duration_minutes, profile.stats)
        before = self.capture(profile, quests)
        return await self.submit(session, before)
