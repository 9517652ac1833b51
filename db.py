import sqlite3
import aiosqlite
import datetime
from contextlib import contextmanager, asynccontextmanager
from typing import Dict, List, Optional, Tuple

from loguru import logger

from config import YamlConfig
from models import (
    CyclingSession,
    CyclingSummary,
    ExerciseEntry,
    RunningSession,
    RunningSummary,
    Session,
    SetEntry,
    StrengthSession,
)
from settings_schema import DEFAULT_WEEKLY_GOAL, load_settings

CYCLING_FIELDS = [
    "title",
    "duration",
    "distance",
    "avg_power",
    "max_power",
    "avg_heart_rate",
    "max_heart_rate",
    "avg_cadence",
    "calories",
]
RUNNING_FIELDS = [
    "title",
    "duration",
    "distance",
    "avg_pace",
    "avg_heart_rate",
    "max_heart_rate",
    "avg_cadence",
    "calories",
    "elevation_gain",
]


def _summary_table(name: str, fields: List[str]) -> tuple[str, List[str]]:
    cols = ",\n                    ".join(
        f"{f} TEXT" if f == "title" else f"{f} REAL" for f in fields
    )
    sql = f"""CREATE TABLE {name} (
                    workout_id INTEGER PRIMARY KEY,
                    {cols},
                    FOREIGN KEY(workout_id) REFERENCES workouts(id) ON DELETE CASCADE
                );"""
    return sql, ["workout_id", *fields]


class Database:
    """Provides SQLite connection management and schema initialization."""

    _TABLE_DEFINITIONS = {
        "workouts": (
            """CREATE TABLE workouts (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL DEFAULT 'local',
                    date TEXT NOT NULL,
                    training_type TEXT NOT NULL DEFAULT 'strength'
                );""",
            ["id", "user_id", "date", "training_type"],
        ),
        "exercises": (
            """CREATE TABLE exercises (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    workout_id INTEGER NOT NULL,
                    name TEXT NOT NULL,
                    position INTEGER NOT NULL DEFAULT 0,
                    FOREIGN KEY(workout_id) REFERENCES workouts(id) ON DELETE CASCADE
                );""",
            ["id", "workout_id", "name", "position"],
        ),
        "sets": (
            """CREATE TABLE sets (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    exercise_id INTEGER NOT NULL,
                    position INTEGER NOT NULL DEFAULT 0,
                    reps INTEGER NOT NULL,
                    weight REAL NOT NULL,
                    rpe INTEGER,
                    FOREIGN KEY(exercise_id) REFERENCES exercises(id) ON DELETE CASCADE
                );""",
            ["id", "exercise_id", "position", "reps", "weight", "rpe"],
        ),
        "cycling_sessions": _summary_table("cycling_sessions", CYCLING_FIELDS),
        "running_sessions": _summary_table("running_sessions", RUNNING_FIELDS),
        "user_settings": (
            """CREATE TABLE user_settings (
                    user_id TEXT NOT NULL,
                    key TEXT NOT NULL,
                    value TEXT NOT NULL,
                    PRIMARY KEY (user_id, key)
                );""",
            ["user_id", "key", "value"],
        ),
    }

    def __init__(self, db_path: str = "workout.db") -> None:
        self._db_path = db_path
        self._ensure_schema()

    @contextmanager
    def _connection(self):
        connection = sqlite3.connect(self._db_path)
        try:
            connection.execute("PRAGMA foreign_keys=on;")
            yield connection
            connection.commit()
        finally:
            connection.close()

    def _ensure_schema(self) -> None:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute("PRAGMA foreign_keys=off;")
            # keep references in other tables pointing at the rebuilt table
            cursor.execute("PRAGMA legacy_alter_table=on;")
            for table, (sql, columns) in self._TABLE_DEFINITIONS.items():
                self._ensure_table(conn, table, sql, columns)
            cursor.execute("PRAGMA foreign_keys=on;")

    def _ensure_table(
        self, conn: sqlite3.Connection, table: str, sql: str, columns: List[str]
    ) -> None:
        cur = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?;", (table,)
        )
        if cur.fetchone() is None:
            conn.execute(sql)
            return

        cur = conn.execute(f"PRAGMA table_info({table});")
        existing_cols = [row[1] for row in cur.fetchall()]
        if existing_cols == columns:
            return

        logger.info("Rebuilding table {} with columns {}", table, columns)
        conn.execute(f"ALTER TABLE {table} RENAME TO {table}_old;")
        conn.execute(sql)
        common = [c for c in existing_cols if c in columns]
        if common:
            cols = ", ".join(common)
            conn.execute(
                f"INSERT INTO {table} ({cols}) SELECT {cols} FROM {table}_old;"
            )
        conn.execute(f"DROP TABLE {table}_old;")


class BaseRepository(Database):
    """Base repository providing helper methods."""

    def execute(self, query: str, params: Tuple = ()) -> int:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return cursor.lastrowid

    def fetch_all(self, query: str, params: Tuple = ()) -> List[Tuple]:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return cursor.fetchall()


class AsyncBaseRepository(Database):
    """Asynchronous variant of BaseRepository using aiosqlite."""

    @asynccontextmanager
    async def _async_connection(self):
        conn = await aiosqlite.connect(self._db_path)
        try:
            yield conn
            await conn.commit()
        finally:
            await conn.close()

    async def fetch_all(self, query: str, params: Tuple = ()) -> List[Tuple]:
        async with self._async_connection() as conn:
            cursor = await conn.execute(query, params)
            rows = await cursor.fetchall()
            return rows


def _where(
    user_id: str,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    workout_id: Optional[int] = None,
) -> tuple[str, list]:
    clauses = ["user_id = ?"]
    params: list = [user_id]
    if start_date:
        clauses.append("date >= ?")
        params.append(start_date)
    if end_date:
        clauses.append("date <= ?")
        params.append(end_date)
    if workout_id is not None:
        clauses.append("id = ?")
        params.append(workout_id)
    return " WHERE " + " AND ".join(clauses), params


def _session_queries(where: str) -> List[str]:
    ids = f"SELECT id FROM workouts{where}"
    return [
        f"SELECT id, date, training_type FROM workouts{where} ORDER BY date, id;",
        f"SELECT id, workout_id, name FROM exercises WHERE workout_id IN ({ids}) ORDER BY workout_id, position, id;",
        "SELECT s.exercise_id, s.reps, s.weight, s.rpe FROM sets s JOIN exercises e ON e.id = s.exercise_id "
        f"WHERE e.workout_id IN ({ids}) ORDER BY s.exercise_id, s.position, s.id;",
        f"SELECT workout_id, {', '.join(CYCLING_FIELDS)} FROM cycling_sessions WHERE workout_id IN ({ids});",
        f"SELECT workout_id, {', '.join(RUNNING_FIELDS)} FROM running_sessions WHERE workout_id IN ({ids});",
    ]


def _build_sessions(
    workouts: List[Tuple],
    exercises: List[Tuple],
    sets: List[Tuple],
    cycling: List[Tuple],
    running: List[Tuple],
) -> List[Session]:
    sets_by_ex: Dict[int, list[SetEntry]] = {}
    for ex_id, reps, weight, rpe in sets:
        sets_by_ex.setdefault(ex_id, []).append(
            SetEntry(reps=int(reps), weight=float(weight), rpe=rpe)
        )
    ex_by_workout: Dict[int, list[ExerciseEntry]] = {}
    for ex_id, wid, name in exercises:
        ex_by_workout.setdefault(wid, []).append(
            ExerciseEntry(name=name, sets=sets_by_ex.get(ex_id, []))
        )
    cyc = {row[0]: dict(zip(CYCLING_FIELDS, row[1:])) for row in cycling}
    run = {row[0]: dict(zip(RUNNING_FIELDS, row[1:])) for row in running}

    result: List[Session] = []
    for wid, date, t_type in workouts:
        day = datetime.date.fromisoformat(date)
        if t_type == "cycling":
            result.append(
                CyclingSession(id=wid, date=day, cycling=CyclingSummary(**cyc[wid]))
            )
        elif t_type == "running":
            result.append(
                RunningSession(id=wid, date=day, running=RunningSummary(**run[wid]))
            )
        else:
            result.append(
                StrengthSession(id=wid, date=day, exercises=ex_by_workout.get(wid, []))
            )
    return result


class WorkoutRepository(BaseRepository):
    """Repository for workout sessions and their exercises, sets and summaries."""

    def _insert_payload(
        self, conn: sqlite3.Connection, workout_id: int, session: Session
    ) -> None:
        if isinstance(session, StrengthSession):
            for pos, ex in enumerate(session.exercises):
                cur = conn.execute(
                    "INSERT INTO exercises (workout_id, name, position) VALUES (?, ?, ?);",
                    (workout_id, ex.name, pos),
                )
                ex_id = cur.lastrowid
                conn.executemany(
                    "INSERT INTO sets (exercise_id, position, reps, weight, rpe) VALUES (?, ?, ?, ?, ?);",
                    [
                        (ex_id, i, s.reps, s.weight, s.rpe)
                        for i, s in enumerate(ex.sets)
                    ],
                )
        elif isinstance(session, CyclingSession):
            data = session.cycling.model_dump()
            conn.execute(
                f"INSERT INTO cycling_sessions (workout_id, {', '.join(CYCLING_FIELDS)}) "
                f"VALUES (?{', ?' * len(CYCLING_FIELDS)});",
                (workout_id, *[data[f] for f in CYCLING_FIELDS]),
            )
        else:
            data = session.running.model_dump()
            conn.execute(
                f"INSERT INTO running_sessions (workout_id, {', '.join(RUNNING_FIELDS)}) "
                f"VALUES (?{', ?' * len(RUNNING_FIELDS)});",
                (workout_id, *[data[f] for f in RUNNING_FIELDS]),
            )

    @staticmethod
    def _delete_payload(conn: sqlite3.Connection, workout_id: int) -> None:
        conn.execute(
            "DELETE FROM sets WHERE exercise_id IN (SELECT id FROM exercises WHERE workout_id = ?);",
            (workout_id,),
        )
        conn.execute("DELETE FROM exercises WHERE workout_id = ?;", (workout_id,))
        conn.execute("DELETE FROM cycling_sessions WHERE workout_id = ?;", (workout_id,))
        conn.execute("DELETE FROM running_sessions WHERE workout_id = ?;", (workout_id,))

    def create(self, session: Session, user_id: str = "local") -> int:
        """Store ``session`` for ``user_id`` and return its new id."""
        with self._connection() as conn:
            cur = conn.execute(
                "INSERT INTO workouts (user_id, date, training_type) VALUES (?, ?, ?);",
                (user_id, session.date.isoformat(), session.type),
            )
            workout_id = cur.lastrowid
            self._insert_payload(conn, workout_id, session)
        logger.info("Stored {} session {} for {}", session.type, workout_id, user_id)
        return workout_id

    def replace(self, workout_id: int, session: Session, user_id: str = "local") -> None:
        """Overwrite a stored session; the last write wins."""
        with self._connection() as conn:
            cur = conn.execute(
                "UPDATE workouts SET date = ?, training_type = ? WHERE id = ? AND user_id = ?;",
                (session.date.isoformat(), session.type, workout_id, user_id),
            )
            if cur.rowcount == 0:
                raise ValueError("workout not found")
            self._delete_payload(conn, workout_id)
            self._insert_payload(conn, workout_id, session)
        logger.info("Replaced session {} for {}", workout_id, user_id)

    def delete(self, workout_id: int, user_id: str = "local") -> None:
        with self._connection() as conn:
            cur = conn.execute(
                "SELECT id FROM workouts WHERE id = ? AND user_id = ?;",
                (workout_id, user_id),
            )
            if cur.fetchone() is None:
                raise ValueError("workout not found")
            self._delete_payload(conn, workout_id)
            conn.execute("DELETE FROM workouts WHERE id = ?;", (workout_id,))
        logger.info("Deleted session {} for {}", workout_id, user_id)

    def fetch_all_workouts(
        self,
        user_id: str = "local",
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> List[Tuple[int, str, str]]:
        where, params = _where(user_id, start_date, end_date)
        return self.fetch_all(
            f"SELECT id, date, training_type FROM workouts{where} ORDER BY date DESC, id DESC;",
            tuple(params),
        )

    def fetch_sessions(
        self,
        user_id: str = "local",
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> List[Session]:
        """Return a snapshot of the user's sessions ordered by date."""
        where, params = _where(user_id, start_date, end_date)
        with self._connection() as conn:
            results = [
                conn.execute(q, tuple(params)).fetchall()
                for q in _session_queries(where)
            ]
        return _build_sessions(*results)

    def fetch_session(self, workout_id: int, user_id: str = "local") -> Optional[Session]:
        where, params = _where(user_id, workout_id=workout_id)
        with self._connection() as conn:
            results = [
                conn.execute(q, tuple(params)).fetchall()
                for q in _session_queries(where)
            ]
        sessions = _build_sessions(*results)
        return sessions[0] if sessions else None


class AsyncWorkoutRepository(AsyncBaseRepository):
    """Async repository for reading session snapshots."""

    async def fetch_sessions(
        self,
        user_id: str = "local",
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> List[Session]:
        where, params = _where(user_id, start_date, end_date)
        results = []
        async with self._async_connection() as conn:
            for q in _session_queries(where):
                cursor = await conn.execute(q, tuple(params))
                results.append(await cursor.fetchall())
        return _build_sessions(*results)


class SettingsRepository(BaseRepository):
    """Per-user preferences with application defaults read from YAML."""

    WEEKLY_GOAL_KEY = "weekly_goal"

    def __init__(
        self, db_path: str = "workout.db", yaml_path: Optional[str] = None
    ) -> None:
        super().__init__(db_path)
        self._yaml = YamlConfig(yaml_path)

    def defaults(self) -> dict:
        return load_settings(self._yaml.load()).model_dump()

    def get_text(self, user_id: str, key: str, default: str) -> str:
        rows = self.fetch_all(
            "SELECT value FROM user_settings WHERE user_id = ? AND key = ?;",
            (user_id, key),
        )
        return rows[0][0] if rows else default

    def set_text(self, user_id: str, key: str, value: str) -> None:
        self.execute(
            "INSERT INTO user_settings (user_id, key, value) VALUES (?, ?, ?) "
            "ON CONFLICT(user_id, key) DO UPDATE SET value=excluded.value;",
            (user_id, key, value),
        )

    def get_int(self, user_id: str, key: str, default: int) -> int:
        try:
            return int(float(self.get_text(user_id, key, str(default))))
        except ValueError:
            return default

    def set_int(self, user_id: str, key: str, value: int) -> None:
        self.set_text(user_id, key, str(value))

    def get_weekly_goal(self, user_id: str = "local") -> int:
        default = self.defaults().get(self.WEEKLY_GOAL_KEY, DEFAULT_WEEKLY_GOAL)
        return self.get_int(user_id, self.WEEKLY_GOAL_KEY, default)

    def set_weekly_goal(self, user_id: str, value: int) -> None:
        self.set_int(user_id, self.WEEKLY_GOAL_KEY, value)
