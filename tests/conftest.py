from __future__ import annotations

import os
import tempfile
from pathlib import Path

_TEST_ROOT = Path(tempfile.mkdtemp(prefix="hirelane-tests-"))
os.environ.update(
    {
        "APP_ENV": "test",
        "DATABASE_URL": f"sqlite:///{_TEST_ROOT / 'hirelane-test.db'}",
        "DATA_DIR": str(_TEST_ROOT),
        "UPLOAD_DIR": str(_TEST_ROOT / "uploads"),
        "OPENAI_API_KEY": "",
        "LOCAL_LLM_ENABLED": "false",
        "CELERY_DISPATCH_ENABLED": "false",
        "CELERY_BROKER_URL": "memory://",
        "CELERY_RESULT_BACKEND": "cache+memory://",
        "EMBEDDING_RETRY_ATTEMPTS": "1",
    }
)

import pytest  # noqa: E402

from hirelane.core.runtime import get_task_queue, reset_runtime  # noqa: E402
from hirelane.db.base import Base  # noqa: E402
from hirelane.db.seed import seed_prompts  # noqa: E402
from hirelane.db.session import SessionLocal, engine  # noqa: E402


@pytest.fixture(autouse=True)
def reset_db() -> None:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as session:
        seed_prompts(session)
    reset_runtime()
    yield
    reset_runtime()


@pytest.fixture
def db():
    with SessionLocal() as session:
        yield session


@pytest.fixture
def queue():
    return get_task_queue()
