from __future__ import annotations

import os
import sqlite3
import subprocess
import sys
from pathlib import Path


def _alembic(repo_root: Path, env: dict[str, str], *args: str) -> None:
    subprocess.run(
        [sys.executable, "-m", "alembic", "-c", "alembic.ini", *args],
        cwd=repo_root,
        env=env,
        check=True,
    )


def test_alembic_upgrade_and_downgrade_initial_schema(tmp_path: Path) -> None:
    repo_root = Path(__file__).resolve().parents[2]
    db_path = tmp_path / "migration_test.db"
    env = os.environ.copy()
    env["DATABASE_URL"] = f"sqlite:///{db_path}"

    _alembic(repo_root, env, "upgrade", "head")

    conn = sqlite3.connect(db_path)
    cur = conn.cursor()
    cur.execute("SELECT name FROM sqlite_master WHERE type='table'")
    tables = {row[0] for row in cur.fetchall()}
    assert {
        "jobs",
        "candidates",
        "job_applications",
        "job_progress",
        "files",
        "interview_requests",
        "db_documents",
        "prompts",
        "background_tasks",
    } <= tables

    cur.execute("PRAGMA table_info(job_progress)")
    progress_cols = {row[1] for row in cur.fetchall()}
    assert {"version", "computed_at", "candidates_pool"} <= progress_cols

    cur.execute("PRAGMA table_info(background_tasks)")
    assert "claimed_at" in {row[1] for row in cur.fetchall()}

    cur.execute("PRAGMA index_list(prompts)")
    unique_indexes = {row[1] for row in cur.fetchall() if row[2]}
    assert "ix_prompts_name" in unique_indexes

    _alembic(repo_root, env, "downgrade", "base")

    cur.execute("SELECT name FROM sqlite_master WHERE type='table' AND name='jobs'")
    assert cur.fetchone() is None

    conn.close()
