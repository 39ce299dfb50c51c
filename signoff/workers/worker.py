from __future__ import annotations

import asyncio
from collections.abc import Sequence

import structlog
from redis import Redis
from rq import Queue, Worker

from signoff.core.config import get_settings
from signoff.core.logging import setup_logging
from signoff.workers import jobs

logger = structlog.get_logger()

QUEUE_NAMES: Sequence[str] = ("default", "reminders")
REGISTERED_JOBS = {
    "send_course_reminders": jobs.send_course_reminders_job,
    "send_overdue_reminders": jobs.send_overdue_reminders_job,
}


def enqueue_overdue_sweep(connection: Redis, as_of: str | None = None) -> str:
    """Queue the overdue-reminder sweep and return the job id."""
    queue = Queue("reminders", connection=connection)
    job = queue.enqueue(jobs.send_overdue_reminders_job, as_of)
    logger.info("overdue_sweep_enqueued", job_id=job.id, as_of=as_of)
    return job.id


async def main() -> None:
    """Bootstrap the worker, wiring queues and job handlers."""
    settings = get_settings()
    setup_logging(settings.log_level)
    redis_connection = Redis.from_url(settings.redis_url)
    logger.info(
        "worker_bootstrap",
        queues=list(QUEUE_NAMES),
        redis_url=settings.redis_url,
        jobs=list(REGISTERED_JOBS.keys()),
    )

    await asyncio.to_thread(_run_worker, redis_connection, QUEUE_NAMES)


def _run_worker(connection: Redis, queue_names: Sequence[str]) -> None:
    """Run the RQ worker in a background thread."""
    queues = [Queue(name, connection=connection) for name in queue_names]
    worker = Worker(queues, connection=connection, name="signoff-worker")
    worker.work(with_scheduler=True)


if __name__ == "__main__":
    asyncio.run(main())
