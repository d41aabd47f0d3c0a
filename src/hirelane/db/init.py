from __future__ import annotations

from pathlib import Path

from hirelane.config import get_settings
from hirelane.db.base import Base
from hirelane.db.session import SessionLocal, engine
from hirelane.db import models  # noqa: F401
from hirelane.db.seed import seed_prompts


def ensure_data_directories() -> None:
    settings = get_settings()
    paths: list[Path] = [settings.data_dir, settings.upload_dir]
    for path in paths:
        path.mkdir(parents=True, exist_ok=True)


def init_database() -> dict[str, int]:
    ensure_data_directories()
    Base.metadata.create_all(bind=engine)

    with SessionLocal() as session:
        results = seed_prompts(session)
    return {"seeded_prompts": sum(1 for item in results if item["type"] == "insert")}
