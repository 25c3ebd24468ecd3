"""SQLite record store for users, artifacts, industry insights and workflow steps."""

import json
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, TypeVar

from src.core.schemas import (
    Assessment,
    CoverLetter,
    CoverLetterStatus,
    IndustryInsightRecord,
    QuestionResult,
    Resume,
    User,
)

T = TypeVar("T")

_USERS_TABLE = """
CREATE TABLE IF NOT EXISTS users (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    auth_id     TEXT    NOT NULL UNIQUE,
    email       TEXT    NOT NULL DEFAULT '',
    name        TEXT,
    industry    TEXT,
    experience  INTEGER,
    bio         TEXT,
    skills_json TEXT    NOT NULL DEFAULT '[]',
    created_at  TEXT    NOT NULL
);
"""

_COVER_LETTERS_TABLE = """
CREATE TABLE IF NOT EXISTS cover_letters (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id         INTEGER NOT NULL,
    content         TEXT    NOT NULL DEFAULT '',
    job_description TEXT    NOT NULL,
    company_name    TEXT    NOT NULL,
    job_title       TEXT    NOT NULL,
    status          TEXT    NOT NULL DEFAULT 'pending',
    created_at      TEXT    NOT NULL,
    updated_at      TEXT    NOT NULL
);
"""

_ASSESSMENTS_TABLE = """
CREATE TABLE IF NOT EXISTS assessments (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id         INTEGER NOT NULL,
    quiz_score      REAL    NOT NULL,
    questions_json  TEXT    NOT NULL DEFAULT '[]',
    category        TEXT    NOT NULL DEFAULT 'Technical',
    improvement_tip TEXT,
    created_at      TEXT    NOT NULL
);
"""

_RESUMES_TABLE = """
CREATE TABLE IF NOT EXISTS resumes (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id     INTEGER NOT NULL UNIQUE,
    content     TEXT    NOT NULL,
    created_at  TEXT    NOT NULL,
    updated_at  TEXT    NOT NULL
);
"""

_RESUME_IMPROVEMENTS_TABLE = """
CREATE TABLE IF NOT EXISTS resume_improvements (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id       INTEGER NOT NULL,
    section_type  TEXT    NOT NULL,
    created_at    TEXT    NOT NULL
);
"""

_INDUSTRY_INSIGHTS_TABLE = """
CREATE TABLE IF NOT EXISTS industry_insights (
    id                      INTEGER PRIMARY KEY AUTOINCREMENT,
    industry                TEXT UNIQUE,
    salary_ranges_json      TEXT NOT NULL DEFAULT '[]',
    growth_rate             REAL NOT NULL DEFAULT 0.0,
    demand_level            TEXT NOT NULL DEFAULT 'MEDIUM',
    top_skills_json         TEXT NOT NULL DEFAULT '[]',
    market_outlook          TEXT NOT NULL DEFAULT 'NEUTRAL',
    key_trends_json         TEXT NOT NULL DEFAULT '[]',
    recommended_skills_json TEXT NOT NULL DEFAULT '[]',
    last_updated            TEXT NOT NULL,
    next_update             TEXT NOT NULL
);
"""

_WORKFLOW_STEPS_TABLE = """
CREATE TABLE IF NOT EXISTS workflow_steps (
    run_id       TEXT NOT NULL,
    label        TEXT NOT NULL,
    result_json  TEXT NOT NULL,
    completed_at TEXT NOT NULL,
    PRIMARY KEY (run_id, label)
);
"""

# Quota key -> table holding the artifacts counted against it.
ARTIFACT_TABLES: dict[str, str] = {
    "cover_letter": "cover_letters",
    "quiz": "assessments",
    "resume_improvement": "resume_improvements",
}


def init_db(path: str | Path) -> sqlite3.Connection:
    """Create the database and tables, returning a connection."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    for ddl in (
        _USERS_TABLE,
        _COVER_LETTERS_TABLE,
        _ASSESSMENTS_TABLE,
        _RESUMES_TABLE,
        _RESUME_IMPROVEMENTS_TABLE,
        _INDUSTRY_INSIGHTS_TABLE,
        _WORKFLOW_STEPS_TABLE,
    ):
        conn.execute(ddl)
    conn.commit()
    return conn


def _ts(value: datetime) -> str:
    return value.isoformat(timespec="microseconds")


def _dt(value: str) -> datetime:
    return datetime.fromisoformat(value)


def _written(record: T | None, what: str) -> T:
    """Return a row read back right after writing it; its absence is a store fault."""
    if record is None:
        msg = f"{what} row missing after write"
        raise sqlite3.DatabaseError(msg)
    return record


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def _row_to_user(row: sqlite3.Row) -> User:
    return User(
        id=row["id"],
        auth_id=row["auth_id"],
        email=row["email"],
        name=row["name"],
        industry=row["industry"],
        experience=row["experience"],
        bio=row["bio"],
        skills=json.loads(row["skills_json"]),
        created_at=_dt(row["created_at"]),
    )


def get_user_by_auth_id(conn: sqlite3.Connection, auth_id: str) -> User | None:
    row = conn.execute("SELECT * FROM users WHERE auth_id = ?", (auth_id,)).fetchone()
    return _row_to_user(row) if row is not None else None


def upsert_user(
    conn: sqlite3.Connection,
    auth_id: str,
    *,
    industry: str,
    experience: int | None,
    bio: str | None,
    skills: list[str],
    email: str = "",
    name: str | None = None,
    now: datetime | None = None,
) -> User:
    """Create the user on first call, otherwise update profile fields only."""
    created_at = _ts(now or datetime.now())
    conn.execute(
        """
        INSERT INTO users
            (auth_id, email, name, industry, experience, bio, skills_json, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(auth_id)
        DO UPDATE SET
            industry = excluded.industry,
            experience = excluded.experience,
            bio = excluded.bio,
            skills_json = excluded.skills_json
        """,
        (auth_id, email, name, industry, experience, bio, json.dumps(skills), created_at),
    )
    conn.commit()
    return _written(get_user_by_auth_id(conn, auth_id), "user")


# ---------------------------------------------------------------------------
# Cover letters
# ---------------------------------------------------------------------------


def _row_to_cover_letter(row: sqlite3.Row) -> CoverLetter:
    return CoverLetter(
        id=row["id"],
        user_id=row["user_id"],
        content=row["content"],
        job_description=row["job_description"],
        company_name=row["company_name"],
        job_title=row["job_title"],
        status=CoverLetterStatus(row["status"]),
        created_at=_dt(row["created_at"]),
        updated_at=_dt(row["updated_at"]),
    )


def create_cover_letter(
    conn: sqlite3.Connection,
    user_id: int,
    *,
    job_title: str,
    company_name: str,
    job_description: str,
    now: datetime | None = None,
) -> CoverLetter:
    """Insert a pending cover letter with empty content."""
    ts = _ts(now or datetime.now())
    cursor = conn.execute(
        """
        INSERT INTO cover_letters
            (user_id, job_description, company_name, job_title, status, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
        (user_id, job_description, company_name, job_title,
         CoverLetterStatus.PENDING.value, ts, ts),
    )
    conn.commit()
    return _written(get_cover_letter(conn, cursor.lastrowid or 0, user_id), "cover letter")


def update_cover_letter(
    conn: sqlite3.Connection,
    letter_id: int,
    *,
    status: CoverLetterStatus,
    content: str | None = None,
    now: datetime | None = None,
) -> None:
    ts = _ts(now or datetime.now())
    if content is None:
        conn.execute(
            "UPDATE cover_letters SET status = ?, updated_at = ? WHERE id = ?",
            (status.value, ts, letter_id),
        )
    else:
        conn.execute(
            "UPDATE cover_letters SET status = ?, content = ?, updated_at = ? WHERE id = ?",
            (status.value, content, ts, letter_id),
        )
    conn.commit()


def get_cover_letter(
    conn: sqlite3.Connection, letter_id: int, user_id: int,
) -> CoverLetter | None:
    row = conn.execute(
        "SELECT * FROM cover_letters WHERE id = ? AND user_id = ?",
        (letter_id, user_id),
    ).fetchone()
    return _row_to_cover_letter(row) if row is not None else None


def list_cover_letters(conn: sqlite3.Connection, user_id: int) -> list[CoverLetter]:
    """Return the user's cover letters, newest first."""
    rows = conn.execute(
        "SELECT * FROM cover_letters WHERE user_id = ? ORDER BY created_at DESC, id DESC",
        (user_id,),
    ).fetchall()
    return [_row_to_cover_letter(r) for r in rows]


def delete_cover_letter(conn: sqlite3.Connection, letter_id: int, user_id: int) -> bool:
    """Delete a cover letter. Returns True if a row was removed."""
    cursor = conn.execute(
        "DELETE FROM cover_letters WHERE id = ? AND user_id = ?", (letter_id, user_id),
    )
    conn.commit()
    return cursor.rowcount > 0


# ---------------------------------------------------------------------------
# Assessments
# ---------------------------------------------------------------------------


def _row_to_assessment(row: sqlite3.Row) -> Assessment:
    return Assessment(
        id=row["id"],
        user_id=row["user_id"],
        quiz_score=row["quiz_score"],
        questions=[QuestionResult(**q) for q in json.loads(row["questions_json"])],
        category=row["category"],
        improvement_tip=row["improvement_tip"],
        created_at=_dt(row["created_at"]),
    )


def create_assessment(
    conn: sqlite3.Connection,
    user_id: int,
    *,
    quiz_score: float,
    questions: list[QuestionResult],
    improvement_tip: str | None,
    category: str = "Technical",
    now: datetime | None = None,
) -> Assessment:
    cursor = conn.execute(
        """
        INSERT INTO assessments
            (user_id, quiz_score, questions_json, category, improvement_tip, created_at)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        (
            user_id,
            quiz_score,
            json.dumps([q.model_dump() for q in questions]),
            category,
            improvement_tip,
            _ts(now or datetime.now()),
        ),
    )
    conn.commit()
    return _written(get_assessment(conn, cursor.lastrowid or 0, user_id), "assessment")


def get_assessment(
    conn: sqlite3.Connection, assessment_id: int, user_id: int,
) -> Assessment | None:
    row = conn.execute(
        "SELECT * FROM assessments WHERE id = ? AND user_id = ?",
        (assessment_id, user_id),
    ).fetchone()
    return _row_to_assessment(row) if row is not None else None


def list_assessments(conn: sqlite3.Connection, user_id: int) -> list[Assessment]:
    """Return the user's assessments, newest first."""
    rows = conn.execute(
        "SELECT * FROM assessments WHERE user_id = ? ORDER BY created_at DESC, id DESC",
        (user_id,),
    ).fetchall()
    return [_row_to_assessment(r) for r in rows]


def delete_assessment(conn: sqlite3.Connection, assessment_id: int, user_id: int) -> bool:
    cursor = conn.execute(
        "DELETE FROM assessments WHERE id = ? AND user_id = ?", (assessment_id, user_id),
    )
    conn.commit()
    return cursor.rowcount > 0


# ---------------------------------------------------------------------------
# Resumes
# ---------------------------------------------------------------------------


def _row_to_resume(row: sqlite3.Row) -> Resume:
    return Resume(
        id=row["id"],
        user_id=row["user_id"],
        content=row["content"],
        created_at=_dt(row["created_at"]),
        updated_at=_dt(row["updated_at"]),
    )


def upsert_resume(
    conn: sqlite3.Connection, user_id: int, content: str, now: datetime | None = None,
) -> Resume:
    ts = _ts(now or datetime.now())
    conn.execute(
        """
        INSERT INTO resumes (user_id, content, created_at, updated_at)
        VALUES (?, ?, ?, ?)
        ON CONFLICT(user_id)
        DO UPDATE SET content = excluded.content, updated_at = excluded.updated_at
        """,
        (user_id, content, ts, ts),
    )
    conn.commit()
    return _written(get_resume(conn, user_id), "resume")


def get_resume(conn: sqlite3.Connection, user_id: int) -> Resume | None:
    row = conn.execute("SELECT * FROM resumes WHERE user_id = ?", (user_id,)).fetchone()
    return _row_to_resume(row) if row is not None else None


def delete_resume(conn: sqlite3.Connection, user_id: int) -> bool:
    cursor = conn.execute("DELETE FROM resumes WHERE user_id = ?", (user_id,))
    conn.commit()
    return cursor.rowcount > 0


def record_resume_improvement(
    conn: sqlite3.Connection, user_id: int, section_type: str, now: datetime | None = None,
) -> None:
    conn.execute(
        "INSERT INTO resume_improvements (user_id, section_type, created_at) VALUES (?, ?, ?)",
        (user_id, section_type, _ts(now or datetime.now())),
    )
    conn.commit()


# ---------------------------------------------------------------------------
# Quota counting
# ---------------------------------------------------------------------------


def count_artifacts_since(
    conn: sqlite3.Connection,
    artifact_key: str,
    user_id: int,
    since: datetime,
    until: datetime | None = None,
) -> int:
    """Count the user's artifacts of one kind created within [since, until].

    ``until`` defaults to now, so rows stamped in the future are not counted.
    """
    table = ARTIFACT_TABLES.get(artifact_key)
    if table is None:
        msg = f"Unknown artifact key '{artifact_key}'"
        raise ValueError(msg)
    row = conn.execute(
        f"SELECT COUNT(*) AS n FROM {table} "  # noqa: S608
        "WHERE user_id = ? AND created_at >= ? AND created_at <= ?",
        (user_id, _ts(since), _ts(until or datetime.now())),
    ).fetchone()
    return int(row["n"])


# ---------------------------------------------------------------------------
# Industry insights
# ---------------------------------------------------------------------------


def _row_to_insight(row: sqlite3.Row) -> IndustryInsightRecord:
    return IndustryInsightRecord(
        industry=row["industry"],
        salary_ranges=json.loads(row["salary_ranges_json"]),
        growth_rate=row["growth_rate"],
        demand_level=row["demand_level"],
        top_skills=json.loads(row["top_skills_json"]),
        market_outlook=row["market_outlook"],
        key_trends=json.loads(row["key_trends_json"]),
        recommended_skills=json.loads(row["recommended_skills_json"]),
        last_updated=_dt(row["last_updated"]),
        next_update=_dt(row["next_update"]),
    )


def _insight_params(record: IndustryInsightRecord) -> tuple[Any, ...]:
    return (
        record.industry,
        json.dumps(record.salary_ranges),
        record.growth_rate,
        record.demand_level.value,
        json.dumps(record.top_skills),
        record.market_outlook.value,
        json.dumps(record.key_trends),
        json.dumps(record.recommended_skills),
        _ts(record.last_updated),
        _ts(record.next_update),
    )


_INSIGHT_INSERT = """
INSERT INTO industry_insights
    (industry, salary_ranges_json, growth_rate, demand_level, top_skills_json,
     market_outlook, key_trends_json, recommended_skills_json, last_updated, next_update)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""


def get_insight(conn: sqlite3.Connection, industry: str) -> IndustryInsightRecord | None:
    row = conn.execute(
        "SELECT * FROM industry_insights WHERE industry = ?", (industry,),
    ).fetchone()
    return _row_to_insight(row) if row is not None else None


def create_insight(conn: sqlite3.Connection, record: IndustryInsightRecord) -> bool:
    """Insert a record unless the industry already exists.

    Returns True if a new row was inserted, False if it was a duplicate.
    """
    try:
        conn.execute(_INSIGHT_INSERT, _insight_params(record))
        conn.commit()
        return True
    except sqlite3.IntegrityError:
        return False


def upsert_insight(conn: sqlite3.Connection, record: IndustryInsightRecord) -> None:
    """Write every insight field for the industry in one statement.

    Always a full-field overwrite keyed by industry (last writer wins), so
    concurrent refreshes never leave a mix of two reports.
    """
    conn.execute(
        _INSIGHT_INSERT.rstrip()
        + """
        ON CONFLICT(industry)
        DO UPDATE SET
            salary_ranges_json = excluded.salary_ranges_json,
            growth_rate = excluded.growth_rate,
            demand_level = excluded.demand_level,
            top_skills_json = excluded.top_skills_json,
            market_outlook = excluded.market_outlook,
            key_trends_json = excluded.key_trends_json,
            recommended_skills_json = excluded.recommended_skills_json,
            last_updated = excluded.last_updated,
            next_update = excluded.next_update
        """,
        _insight_params(record),
    )
    conn.commit()


def list_distinct_industries(conn: sqlite3.Connection) -> list[str | None]:
    """Return distinct industry keys in store (insertion) order, NULL included."""
    rows = conn.execute(
        "SELECT industry FROM industry_insights GROUP BY industry ORDER BY MIN(id)",
    ).fetchall()
    return [r["industry"] for r in rows]


# ---------------------------------------------------------------------------
# Workflow step journal
# ---------------------------------------------------------------------------


def get_step_result(
    conn: sqlite3.Connection, run_id: str, label: str,
) -> tuple[bool, Any]:
    """Return (found, result) for a journaled step."""
    row = conn.execute(
        "SELECT result_json FROM workflow_steps WHERE run_id = ? AND label = ?",
        (run_id, label),
    ).fetchone()
    if row is None:
        return (False, None)
    return (True, json.loads(row["result_json"]))


def save_step_result(
    conn: sqlite3.Connection,
    run_id: str,
    label: str,
    result: Any,
    now: datetime | None = None,
) -> None:
    conn.execute(
        """
        INSERT OR REPLACE INTO workflow_steps (run_id, label, result_json, completed_at)
        VALUES (?, ?, ?, ?)
        """,
        (run_id, label, json.dumps(result), _ts(now or datetime.now())),
    )
    conn.commit()


def has_step_results(conn: sqlite3.Connection, run_id: str) -> bool:
    row = conn.execute(
        "SELECT 1 FROM workflow_steps WHERE run_id = ? LIMIT 1", (run_id,),
    ).fetchone()
    return row is not None


def prune_step_results(conn: sqlite3.Connection, before: datetime) -> int:
    """Delete journal rows completed before ``before``. Returns rows removed."""
    cursor = conn.execute(
        "DELETE FROM workflow_steps WHERE completed_at < ?", (_ts(before),),
    )
    conn.commit()
    return cursor.rowcount
