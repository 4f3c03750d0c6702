import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

import requests

from algorithms import ExerciseClassifier, RewardMath
from client import QuestClient
from config import load_settings
from db import ExerciseLibraryRepository, PendingWorkoutRepository
from delta_detector import LevelUp, QuestComplete
from gamification_service import DEFAULT_STREAK, RewardCalculator, level_progress
from library_service import ExerciseLibrary, load_library
from models import SET_FIELDS, WorkoutSession
from routine_session import RoutineSession, parse_routine_exercises
from submission_service import (
    SubmissionError,
    SubmissionOrchestrator,
    SubmissionResult,
    SubmissionValidationError,
)

logger = logging.getLogger(__name__)


def build_client(settings) -> QuestClient:
    return QuestClient(
        base_url=settings.api_url,
        token=settings.api_token,
        timeout=settings.request_timeout,
    )


def enter_sets(session: RoutineSession, sets_by_position: dict) -> None:
    """Type the given set rows into each position of ``session``."""
    for key, rows in sorted(sets_by_position.items(), key=lambda kv: int(kv[0])):
        position = int(key)
        for idx, row in enumerate(rows):
            if idx > 0:
                session.store.add_set(position)
            for field in SET_FIELDS:
                if field in row:
                    session.store.update_set(position, idx, field, str(row[field]))


def walk_routine(session: RoutineSession) -> list:
    records = None
    while records is None:
        records = session.next()
    return records


def describe(result: SubmissionResult) -> str:
    outcome = result.outcome
    lines = [
        f"{result.session.name}: {result.session.duration} min, "
        f"{result.session.points} points, {result.session.coins} coins"
    ]
    if isinstance(outcome, LevelUp):
        lines.append(
            f"LEVEL UP! {outcome.old_level} -> {outcome.new_level} (+{outcome.levels_gained})"
        )
    elif isinstance(outcome, QuestComplete):
        for quest in outcome.quests:
            lines.append(f"Quest complete: {quest.name}")
    else:
        lines.append("Workout complete")
    return "\n".join(lines)


def log_workout(
    workout_path: str,
    duration: int,
    settings_path: str = "settings.yaml",
    name: Optional[str] = None,
    client: Optional[QuestClient] = None,
) -> SubmissionResult:
    settings = load_settings(settings_path)
    client = client or build_client(settings)
    with open(workout_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    library = load_library(client, ExerciseLibraryRepository(settings.db_path))
    exercises = parse_routine_exercises(data.get("exercises"), library)
    session = RoutineSession(exercises, library)
    enter_sets(session, data.get("sets") or {})
    records = walk_routine(session)

    profile = client.get_character()
    quests = client.get_quests()
    orchestrator = SubmissionOrchestrator(
        client,
        RewardCalculator(library, streak=settings.streak),
        PendingWorkoutRepository(settings.db_path),
    )
    return asyncio.run(
        orchestrator.complete_workout(
            name or data.get("name") or settings.default_workout_name,
            records,
            duration,
            profile,
            quests,
        )
    )


def retry_pending(settings_path: str = "settings.yaml", client: Optional[QuestClient] = None) -> int:
    """Resubmit parked workouts; returns how many still failed."""
    settings = load_settings(settings_path)
    client = client or build_client(settings)
    repo = PendingWorkoutRepository(settings.db_path)
    orchestrator = SubmissionOrchestrator(client, RewardCalculator(ExerciseLibrary()), repo)
    failures = 0
    for pending_id, payload, attempts in repo.fetch_all_pending():
        session = WorkoutSession.from_payload(payload)
        before = orchestrator.capture(client.get_character(), client.get_quests())
        try:
            result = asyncio.run(orchestrator.submit(session, before, pending_id))
        except SubmissionError as exc:
            failures += 1
            print(f"Attempt {attempts + 1} for {session.name!r} failed: {exc}")
            continue
        print(describe(result))
    return failures


def show_profile(settings_path: str = "settings.yaml", client: Optional[QuestClient] = None) -> None:
    settings = load_settings(settings_path)
    client = client or build_client(settings)
    profile = client.get_character()
    progress = level_progress(profile)
    print(
        f"{profile.username or 'Character'} - level {progress['level']} "
        f"({progress['exp']}/{progress['exp_needed']} exp, {progress['percent']}%)"
    )
    for quest in client.get_quests():
        pct = RewardMath.percent(quest.number_of_workouts_completed, quest.number_of_workouts_needed)
        print(f"[{quest.status}] {quest.name}: {quest.description()} ({pct:.0f}%)")


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="FitQuest workout session tools")
    parser.add_argument("--settings", default="settings.yaml")
    sub = parser.add_subparsers(dest="cmd", required=True)

    cls = sub.add_parser("classify")
    cls.add_argument("--category")
    cls.add_argument("--equipment")

    rew = sub.add_parser("rewards")
    rew.add_argument("--duration", type=int, required=True)
    rew.add_argument("--stat-value", type=int, default=0)
    rew.add_argument("--streak", type=int, default=DEFAULT_STREAK)

    sub.add_parser("sync-library")

    log = sub.add_parser("log-workout")
    log.add_argument("--file", required=True)
    log.add_argument("--duration", type=int, required=True)
    log.add_argument("--name")

    sub.add_parser("retry-pending")
    sub.add_parser("profile")

    args = parser.parse_args(argv)

    if args.cmd == "classify":
        kind = ExerciseClassifier.classify({"category": args.category, "equipment": args.equipment})
        print(f"{kind} ({ExerciseClassifier.reward_stat(kind)})")
        return 0
    if args.cmd == "rewards":
        try:
            points = RewardMath.points(args.duration, args.stat_value, args.streak)
        except ValueError as exc:
            print(f"Invalid reward input: {exc}", file=sys.stderr)
            return 2
        print(f"{points} points, {RewardMath.coins(args.duration)} coins")
        return 0

    try:
        settings = load_settings(args.settings)
    except ValueError as exc:
        print(f"Invalid settings in {args.settings}: {exc}", file=sys.stderr)
        return 2
    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))

    try:
        if args.cmd == "sync-library":
            repo = ExerciseLibraryRepository(settings.db_path)
            library = load_library(build_client(settings), repo)
            print(f"{len(library)} exercises available (cached {repo.last_fetched() or 'never'})")
        elif args.cmd == "log-workout":
            print(describe(log_workout(args.file, args.duration, args.settings, args.name)))
        elif args.cmd == "retry-pending":
            return 1 if retry_pending(args.settings) else 0
        elif args.cmd == "profile":
            show_profile(args.settings)
    except SubmissionValidationError as exc:
        print(f"Cannot record workout: {exc}", file=sys.stderr)
        return 2
    except SubmissionError as exc:
        print(f"{exc} Run 'retry-pending' to resend it.", file=sys.stderr)
        return 1
    except requests.exceptions.RequestException as exc:
        logger.error("Request failed: %s", exc)
        print(f"Could not reach {settings.api_url}: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
