import datetime
from typing import Callable

from fastapi import APIRouter, Body, Depends, FastAPI, Header, HTTPException
from loguru import logger

from calendar_service import CalendarService, MonthCursor
from config import APP_VERSION, YamlConfig, default_db_path
from db import SettingsRepository, WorkoutRepository
from errors import InvalidInputError, NoDataError
from gamification_service import GamificationService
from logger_config import setup_logger
from models import Session, parse_session
from settings_schema import load_settings
from stats_service import StatisticsService


def current_user(x_user_id: str = Header(default="local")) -> str:
    """Identify the caller; authentication happens in front of this API."""
    return x_user_id


def _parse_day(value: str, field: str = "date") -> datetime.date:
    try:
        return datetime.date.fromisoformat(value)
    except ValueError:
        raise HTTPException(
            status_code=400, detail=f"{field} must be in YYYY-MM-DD format"
        )


class TrackerAPI:
    """Provides REST endpoints for workout logging and progress analytics."""

    def __init__(
        self,
        db_path: str | None = None,
        yaml_path: str | None = None,
        *,
        clock: Callable[[], datetime.date] = datetime.date.today,
        configure_logging: bool = True,
    ) -> None:
        self.db_path = db_path or default_db_path()
        self.config = load_settings(YamlConfig(yaml_path).load())
        if configure_logging:
            setup_logger(self.config.log_level, self.config.log_file)
        self.clock = clock
        self.workouts = WorkoutRepository(self.db_path)
        self.settings = SettingsRepository(self.db_path, yaml_path)
        self.statistics = StatisticsService(self.workouts)
        self.gamification = GamificationService(self.settings)
        self.calendar = CalendarService()
        self.app = FastAPI(
            title="Workout Tracker API",
            description="REST API for workout logging and progress analytics",
            version=APP_VERSION,
        )
        self._setup_routes()

    def _validate(self, body: dict) -> Session:
        try:
            session = parse_session(body)
        except InvalidInputError as e:
            logger.warning("Rejected workout payload: {}", e)
            raise HTTPException(status_code=400, detail=str(e))
        if session.date > self.clock():
            raise HTTPException(status_code=400, detail="date cannot be in the future")
        return session

    def _setup_routes(self) -> None:
        workouts_router = APIRouter(prefix="/workouts", tags=["Workouts"])
        progress_router = APIRouter(prefix="/progress", tags=["Progress"])
        stats_router = APIRouter(prefix="/stats", tags=["Statistics"])
        goals_router = APIRouter(prefix="/goals", tags=["Goals"])
        calendar_router = APIRouter(prefix="/calendar", tags=["Calendar"])

        @self.app.get(
            "/health",
            summary="Health check",
            description="Verify API and database connectivity.",
        )
        def health():
            """Return API and database connection status."""
            try:
                self.workouts.fetch_all_workouts()
                return {"status": "ok"}
            except Exception as e:  # pragma: no cover - connectivity failure
                raise HTTPException(status_code=500, detail=str(e))

        @workouts_router.post(
            "",
            status_code=201,
            summary="Create workout",
            description="Log a strength, cycling or running session.",
        )
        def create_workout(body: dict = Body(...), user_id: str = Depends(current_user)):
            session = self._validate(body)
            return {"id": self.workouts.create(session, user_id)}

        @workouts_router.get("", summary="List workouts")
        def list_workouts(
            start_date: str = None,
            end_date: str = None,
            user_id: str = Depends(current_user),
        ):
            sessions = self.workouts.fetch_sessions(user_id, start_date, end_date)
            return list(reversed(sessions))

        @workouts_router.get("/{workout_id}")
        def get_workout(workout_id: int, user_id: str = Depends(current_user)):
            session = self.workouts.fetch_session(workout_id, user_id)
            if session is None:
                raise HTTPException(status_code=404, detail="workout not found")
            return session

        @workouts_router.put("/{workout_id}")
        def update_workout(
            workout_id: int,
            body: dict = Body(...),
            user_id: str = Depends(current_user),
        ):
            session = self._validate(body)
            try:
                self.workouts.replace(workout_id, session, user_id)
            except ValueError as e:
                raise HTTPException(status_code=404, detail=str(e))
            return {"status": "updated"}

        @workouts_router.delete("/{workout_id}")
        def delete_workout(workout_id: int, user_id: str = Depends(current_user)):
            try:
                self.workouts.delete(workout_id, user_id)
            except ValueError as e:
                raise HTTPException(status_code=404, detail=str(e))
            return {"status": "deleted"}

        @progress_router.get("/exercises")
        def progress_exercises(user_id: str = Depends(current_user)):
            return self.statistics.exercise_names(user_id=user_id)

        @progress_router.get("/records")
        def progress_records(user_id: str = Depends(current_user)):
            return self.statistics.personal_records(user_id=user_id)

        @progress_router.get("/records/{exercise:path}")
        def progress_record(exercise: str, user_id: str = Depends(current_user)):
            try:
                return self.statistics.personal_record(exercise, user_id=user_id)
            except NoDataError as e:
                raise HTTPException(status_code=404, detail=str(e))

        @progress_router.get("/exercise/{exercise:path}")
        def progress(exercise: str, user_id: str = Depends(current_user)):
            return self.statistics.progress(exercise, user_id=user_id)

        @stats_router.get("/overview")
        def stats_overview(user_id: str = Depends(current_user)):
            return self.statistics.overview(today=self.clock(), user_id=user_id)

        @stats_router.get("/streak")
        def stats_streak(user_id: str = Depends(current_user)):
            sessions = self.workouts.fetch_sessions(user_id)
            return self.gamification.workout_streak(sessions, self.clock())

        @stats_router.get("/achievements")
        def stats_achievements(user_id: str = Depends(current_user)):
            sessions = self.workouts.fetch_sessions(user_id)
            return self.gamification.achievement_summary(sessions, self.clock())

        @goals_router.get("/weekly")
        def weekly_goal(user_id: str = Depends(current_user)):
            sessions = self.workouts.fetch_sessions(user_id)
            return self.gamification.weekly_goal(sessions, user_id, self.clock())

        @goals_router.put("/weekly")
        def set_weekly_goal(target: int, user_id: str = Depends(current_user)):
            try:
                self.gamification.set_weekly_goal(user_id, target)
            except InvalidInputError as e:
                raise HTTPException(status_code=400, detail=str(e))
            sessions = self.workouts.fetch_sessions(user_id)
            return self.gamification.weekly_goal(sessions, user_id, self.clock())

        @calendar_router.get("/week")
        def calendar_week(user_id: str = Depends(current_user)):
            sessions = self.workouts.fetch_sessions(user_id)
            return self.calendar.week_activity(sessions, self.clock())

        @calendar_router.get("/day/{day}")
        def calendar_day(day: str, user_id: str = Depends(current_user)):
            sessions = self.workouts.fetch_sessions(user_id)
            return self.calendar.sessions_on(_parse_day(day), sessions)

        @calendar_router.get("/{year}/{month}")
        def calendar_month(year: int, month: int, user_id: str = Depends(current_user)):
            try:
                cursor = MonthCursor(year, month)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            sessions = self.workouts.fetch_sessions(user_id)
            return self.calendar.month_view(cursor, sessions, self.clock())

        self.app.include_router(workouts_router)
        self.app.include_router(progress_router)
        self.app.include_router(stats_router)
        self.app.include_router(goals_router)
        self.app.include_router(calendar_router)


api = TrackerAPI()
app = api.app

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app)
