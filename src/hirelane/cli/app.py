from __future__ import annotations

import json
from pathlib import Path

import typer
import uvicorn

from hirelane.api.app import create_app
from hirelane.config import get_settings
from hirelane.core.celery_app import celery_app
from hirelane.core.jobs import JobService, job_to_dict
from hirelane.core.job_progress import JobProgressAggregator, serialize_job_progress
from hirelane.core.runtime import get_task_queue
from hirelane.db.init import init_database
from hirelane.db.repositories import Repository
from hirelane.db.session import SessionLocal
from hirelane.logging_config import configure_logging
from hirelane.search.semantic import SemanticSearch
from hirelane.search.vector_sync import VectorSync

app = typer.Typer(help="Hirelane CLI")
jobs_app = typer.Typer(help="Job registry commands")
vectors_app = typer.Typer(help="Embedding index commands")
prompts_app = typer.Typer(help="Stored prompt commands")

app.add_typer(jobs_app, name="jobs")
app.add_typer(vectors_app, name="vectors")
app.add_typer(prompts_app, name="prompts")

_INITIALIZED = False


def ensure_initialized() -> None:
    global _INITIALIZED
    if _INITIALIZED:
        return
    init_database()
    _INITIALIZED = True


@app.command("init")
def init_cmd() -> None:
    """Initialize database, directories, and default prompts."""
    configure_logging()
    result = init_database()
    typer.echo(json.dumps({"ok": True, **result}, indent=2))


@app.command("serve")
def serve(
    host: str | None = typer.Option(None, "--host"),
    port: int | None = typer.Option(None, "--port"),
) -> None:
    configure_logging()
    ensure_initialized()
    settings = get_settings()
    app_instance = create_app()
    uvicorn.run(app_instance, host=host or settings.app_host, port=port or settings.app_port)


@app.command("worker")
def worker_cmd(
    once: bool = typer.Option(False, "--once", help="Run due tasks in-process and exit"),
    concurrency: int = typer.Option(2, "--concurrency"),
    beat: bool = typer.Option(False, "--beat", help="Also run the stale-task requeue schedule"),
) -> None:
    """Run the Celery worker, or drain due tasks in-process with --once."""
    configure_logging()
    ensure_initialized()
    queue = get_task_queue()
    if once:
        typer.echo(json.dumps({"processed": queue.drain()}, indent=2))
        return
    argv = ["worker", "--loglevel=INFO", f"--concurrency={concurrency}"]
    if beat:
        argv.append("--beat")
    celery_app.worker_main(argv)


@jobs_app.command("list")
def jobs_list(limit: int = typer.Option(20, "--limit")) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        jobs = Repository(db).list_jobs(limit=limit)
        typer.echo(
            json.dumps(
                [
                    {
                        "id": job.id,
                        "title": job.title,
                        "company": job.company,
                        "location": job.location,
                        "meeting_code": job.meeting_code,
                        "status": job.status,
                    }
                    for job in jobs
                ],
                indent=2,
            )
        )


@jobs_app.command("create")
def jobs_create(file: Path = typer.Option(..., "--file", exists=True, readable=True)) -> None:
    """Create a job from a JSON payload file."""
    configure_logging()
    ensure_initialized()
    payload = json.loads(file.read_text(encoding="utf-8"))
    with SessionLocal() as db:
        job = JobService(db).create_job(payload)
        typer.echo(json.dumps(job_to_dict(job), indent=2))


@jobs_app.command("bulk-delete")
def jobs_bulk_delete(job_ids: list[int] = typer.Argument(...)) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        typer.echo(json.dumps(JobService(db).bulk_delete_jobs(job_ids), indent=2))


@jobs_app.command("progress")
def jobs_progress(
    job_id: int = typer.Option(..., "--job-id"),
    recompute: bool = typer.Option(False, "--recompute"),
) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        row = JobProgressAggregator(db).recompute(job_id) if recompute else Repository(db).get_job_progress(job_id)
        if row is None:
            typer.echo(f"no job progress for job {job_id}", err=True)
            raise typer.Exit(code=1)
        typer.echo(json.dumps(serialize_job_progress(row), indent=2))


@vectors_app.command("sync")
def vectors_sync(
    table_name: str = typer.Option(..., "--table"),
    document_id: int = typer.Option(..., "--id"),
) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        try:
            stored = VectorSync(db).sync(table_name, document_id)
        except ValueError as exc:
            typer.echo(str(exc), err=True)
            raise typer.Exit(code=1) from exc
        typer.echo(json.dumps({"table_name": table_name, "document_id": document_id, "stored": stored}, indent=2))


@vectors_app.command("migrate")
def vectors_migrate() -> None:
    """Re-embed every candidate, job and interview request."""
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        typer.echo(json.dumps(VectorSync(db).migrate_all(), indent=2))


@vectors_app.command("search")
def vectors_search(
    query: str = typer.Argument(...),
    limit: int = typer.Option(10, "--limit"),
) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        typer.echo(SemanticSearch(db).search_markdown(query, limit=limit))


@prompts_app.command("list")
def prompts_list() -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        rows = Repository(db).list_prompts()
        typer.echo(
            json.dumps(
                [
                    {"id": row.id, "name": row.name, "description": row.description, "updated_by": row.updated_by}
                    for row in rows
                ],
                indent=2,
            )
        )


@prompts_app.command("set")
def prompts_set(
    name: str = typer.Option(..., "--name"),
    file: Path = typer.Option(..., "--file", exists=True, readable=True),
    description: str = typer.Option("", "--description"),
) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        prompt = Repository(db).upsert_prompt_by_name(
            name=name,
            content=file.read_text(encoding="utf-8"),
            description=description,
            updated_by="cli",
        )
        typer.echo(json.dumps({"id": prompt.id, "name": prompt.name}, indent=2))
