"""Outbox-backed runner for fire-and-forget enrichment tasks."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..models.job import EnrichmentJob, JobKind, JobStatus
from ..ports.store import JobStore

logger = logging.getLogger(__name__)

JobHandler = Callable[[Dict[str, Any]], Awaitable[Any]]


class EnrichmentRunner:
    """Persists each job before starting it, so unfinished work can be resumed.

    A job is written as ``pending``, moved to ``running`` when its task
    starts and to ``done`` or ``failed`` when it ends. Handler errors are
    recorded on the job and logged; they never reach the submitter.
    """

    def __init__(self, store: JobStore):
        self.store = store
        self._handlers: Dict[JobKind, JobHandler] = {}
        self._tasks: Dict[asyncio.Task, str] = {}
        self.jobs_processed = 0
        self.jobs_failed = 0

    def register_handler(self, kind: JobKind, handler: JobHandler) -> None:
        self._handlers[kind] = handler

    async def submit(self, kind: JobKind, payload: Dict[str, Any]) -> EnrichmentJob:
        """Record a job and start it in the background.

        Raises:
            ValueError: If no handler is registered for ``kind``
            PersistenceError: If the job row cannot be written
        """
        if kind not in self._handlers:
            raise ValueError(f"No handler registered for job kind '{kind.value}'")

        job = await self.store.insert_job(EnrichmentJob(kind=kind, payload=payload))
        self._spawn(job)
        logger.info(f"📨 Submitted {kind.value} job {job.id}")
        return job

    def _spawn(self, job: EnrichmentJob) -> None:
        task = asyncio.create_task(self._run(job))
        self._tasks[task] = job.id
        task.add_done_callback(self._forget)

    def _forget(self, task: asyncio.Task) -> None:
        self._tasks.pop(task, None)

    async def _run(self, job: EnrichmentJob) -> EnrichmentJob:
        handler = self._handlers[job.kind]
        job = job.model_copy(update={"status": JobStatus.RUNNING, "attempts": job.attempts + 1})

        try:
            job = await self.store.update_job(job)
            await handler(job.payload)
        except Exception as e:
            self.jobs_failed += 1
            logger.error(f"❌ {job.kind.value} job {job.id} failed: {e}", exc_info=True)
            failed = job.model_copy(update={"status": JobStatus.FAILED, "last_error": str(e)[:500]})
            try:
                return await self.store.update_job(failed)
            except Exception as store_error:
                logger.error(f"❌ Could not record failure of job {job.id}: {store_error}")
                return failed

        self.jobs_processed += 1
        done = job.model_copy(update={"status": JobStatus.DONE, "last_error": None})
        try:
            return await self.store.update_job(done)
        except Exception as e:
            logger.error(f"❌ Could not mark job {job.id} done: {e}")
            return done

    async def drain(self, timeout: Optional[float] = None) -> None:
        """Wait for every in-flight task to finish."""
        while self._tasks:
            pending = [task for task in self._tasks if not task.done()]
            if not pending:
                break
            _, still_running = await asyncio.wait(pending, timeout=timeout)
            if still_running:
                logger.warning(f"⚠️ {len(still_running)} enrichment tasks still running after {timeout}s")
                return

    async def resume_incomplete(self, max_attempts: int = 3) -> List[EnrichmentJob]:
        """Restart pending, running and failed jobs that have attempts left.

        Running jobs are only resumed when no task in this process owns them,
        which after a restart is always the case.
        """
        jobs = await self.store.list_jobs([JobStatus.PENDING, JobStatus.RUNNING, JobStatus.FAILED])
        in_flight = set(self._tasks.values())

        resumed = []
        for job in jobs:
            if job.id in in_flight or job.attempts >= max_attempts:
                continue
            if job.kind not in self._handlers:
                logger.warning(f"⚠️ No handler for {job.kind.value} job {job.id} - left as is")
                continue
            self._spawn(job)
            resumed.append(job)

        logger.info(f"🔄 Resumed {len(resumed)} enrichment jobs")
        return resumed

    @property
    def in_flight(self) -> int:
        return len(self._tasks)
