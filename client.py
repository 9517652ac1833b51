import requests
from urllib.parse import quote
from typing import Optional


class TrackerClient:
    """Simple REST client for the workout tracker API."""

    def __init__(self, base_url: str = "http://localhost:8000", user_id: str = "local") -> None:
        self.base_url = base_url.rstrip("/")
        self.headers = {"X-User-Id": user_id}

    def _get(self, path: str, **params):
        resp = requests.get(f"{self.base_url}{path}", params=params, headers=self.headers)
        resp.raise_for_status()
        return resp.json()

    def create_workout(self, payload: dict) -> int:
        resp = requests.post(f"{self.base_url}/workouts", json=payload, headers=self.headers)
        resp.raise_for_status()
        return resp.json()["id"]

    def list_workouts(self, start_date: Optional[str] = None, end_date: Optional[str] = None):
        params = {k: v for k, v in (("start_date", start_date), ("end_date", end_date)) if v}
        return self._get("/workouts", **params)

    def delete_workout(self, workout_id: int) -> None:
        resp = requests.delete(f"{self.base_url}/workouts/{workout_id}", headers=self.headers)
        resp.raise_for_status()

    def progress(self, exercise: str) -> dict:
        return self._get(f"/progress/exercise/{quote(exercise, safe='')}")

    def exercises(self) -> list[str]:
        return self._get("/progress/exercises")

    def streak(self) -> dict:
        return self._get("/stats/streak")

    def weekly_goal(self) -> dict:
        return self._get("/goals/weekly")

    def set_weekly_goal(self, target: int) -> dict:
        resp = requests.put(
            f"{self.base_url}/goals/weekly", params={"target": target}, headers=self.headers
        )
        resp.raise_for_status()
        return resp.json()

    def calendar(self, year: int, month: int) -> dict:
        return self._get(f"/calendar/{year}/{month}")
