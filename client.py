import logging
from typing import Any, Optional

import requests

from models import CharacterProfile, Quest, WorkoutSession

logger = logging.getLogger(__name__)


class QuestClient:
    """REST client for the FitQuest API."""

    def __init__(
        self,
        base_url: str = "http://localhost:8080",
        token: Optional[str] = None,
        timeout: float = 10,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = {"Content-Type": "application/json"}
        if token:
            self.headers["Authorization"] = f"Bearer {token}"

    def _get(self, path: str) -> Any:
        resp = requests.get(
            f"{self.base_url}{path}", headers=self.headers, timeout=self.timeout
        )
        resp.raise_for_status()
        return resp.json()

    def _post(self, path: str, payload: dict) -> requests.Response:
        resp = requests.post(
            f"{self.base_url}{path}",
            json=payload,
            headers=self.headers,
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp

    def get_workout_library(self) -> list[dict]:
        return self._get("/workouts/library")

    def get_workout_history(self) -> list[dict]:
        return self._get("/workouts/history").get("history", [])

    def get_workout(self, workout_id: int | str) -> dict:
        return self._get(f"/workouts/history/{workout_id}")

    def record_workout(self, session: WorkoutSession) -> None:
        logger.debug("Recording workout %r", session.name)
        self._post("/workouts/history", session.to_payload())

    def get_character(self) -> CharacterProfile:
        return CharacterProfile.model_validate(self._get("/character"))

    def get_quests(self) -> list[Quest]:
        data = self._get("/quests")
        return [Quest.model_validate(q) for q in data.get("quests", [])]

    def create_quest(self, difficulty: str) -> dict:
        resp = self._post("/quests", {"difficulty": difficulty})
        return resp.json()
