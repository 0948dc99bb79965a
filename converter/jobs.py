"""Job store for tracking pending and finished conversion jobs."""

import asyncio
import mimetypes
from datetime import datetime
from pathlib import Path
from typing import Iterable

import structlog

from converter.config import settings
from converter.errors import InvalidTransitionError
from converter.models import (
    ConversionJob,
    ConversionResult,
    JobStatus,
    SourceFile,
    TargetFormat,
    normalize_target,
)
from converter.pipeline import BatchRunner

logger = structlog.get_logger()

# Allowed status transitions; anything else would move a job backwards
TRANSITIONS: dict[JobStatus, set[JobStatus]] = {
    JobStatus.PENDING: {JobStatus.CONVERTING},
    JobStatus.CONVERTING: {JobStatus.DONE, JobStatus.ERROR},
    JobStatus.DONE: set(),
    JobStatus.ERROR: set(),
}


class JobManager:
    """
    In-memory job store owned by the host application.

    Filters incoming files, keeps jobs in insertion order and enforces the
    job status state machine.
    """

    def __init__(self, accepted_mime_types: Iterable[str] | None = None) -> None:
        """
        Initialize job manager.

        Args:
            accepted_mime_types: MIME types let through intake, defaults to settings
        """
        if accepted_mime_types is None:
            accepted_mime_types = settings.accepted_mime_types
        self._accepted = {m.lower() for m in accepted_mime_types}
        self._jobs: dict[str, ConversionJob] = {}
        self._lock = asyncio.Lock()

    def accepts(self, mime_type: str | None) -> bool:
        """
        Check whether intake lets a file through.

        Args:
            mime_type: Declared MIME type, None if it could not be determined

        Returns:
            True if the type is accepted (case-insensitive)
        """
        return bool(mime_type) and mime_type.lower() in self._accepted

    async def add_files(
        self,
        files: Iterable[tuple[str, bytes, str]],
        target_format: TargetFormat | str,
    ) -> list[ConversionJob]:
        """
        Create pending jobs for every accepted file.

        Args:
            files: (name, content, mime_type) triples
            target_format: Target applied to the new jobs

        Returns:
            Created jobs, in input order; rejected files are skipped
        """
        created: list[ConversionJob] = []
        async with self._lock:
            for name, content, mime_type in files:
                if not self.accepts(mime_type):
                    logger.warning("File rejected at intake",
                                   file=name, mime_type=mime_type)
                    continue

                source = SourceFile(content=content, mime_type=mime_type.lower(), name=name)
                job = ConversionJob(source=source, target_format=target_format)
                self._jobs[job.job_id] = job
                created.append(job)

                logger.info(
                    "Job created",
                    job_id=job.job_id,
                    file=name,
                    size=source.display_size,
                    target=job.target_format,
                )
        return created

    async def add_paths(
        self,
        paths: Iterable[Path | str],
        target_format: TargetFormat | str,
    ) -> list[ConversionJob]:
        """
        Create pending jobs for files on disk.

        Args:
            paths: Files to read
            target_format: Target applied to the new jobs

        Returns:
            Created jobs, in input order; files whose extension maps to no
            accepted MIME type are skipped
        """
        # Older mimetypes tables lack WEBP
        types = mimetypes.MimeTypes()
        types.add_type("image/webp", ".webp")

        files = []
        for path in map(Path, paths):
            mime_type, _ = types.guess_type(path.name)
            files.append((path.name, path.read_bytes(), mime_type))
        return await self.add_files(files, target_format)

    async def get_job(self, job_id: str) -> ConversionJob | None:
        """
        Get job by ID.

        Args:
            job_id: Job identifier

        Returns:
            Job if found, None otherwise
        """
        async with self._lock:
            return self._jobs.get(job_id)

    async def list_jobs(self) -> list[ConversionJob]:
        """
        List all jobs in insertion order.

        Returns:
            The stored jobs themselves, not copies
        """
        async with self._lock:
            return list(self._jobs.values())

    async def remove_job(self, job_id: str) -> bool:
        """Drop a job from the store. Returns False if it was not there."""
        async with self._lock:
            removed = self._jobs.pop(job_id, None)
        if removed is not None:
            logger.info("Job removed", job_id=job_id)
        return removed is not None

    async def clear(self) -> None:
        """Remove every job, whatever its status, resetting the store."""
        async with self._lock:
            self._jobs.clear()
        logger.info("Job store cleared")

    async def retarget(self, target_format: TargetFormat | str) -> int:
        """Set the target format of every pending job. Returns how many changed."""
        count = 0
        async with self._lock:
            for job in self._jobs.values():
                if job.status is JobStatus.PENDING:
                    job.target_format = normalize_target(target_format)
                    count += 1
        return count

    async def snapshot_pending(self) -> tuple[ConversionJob, ...]:
        """Immutable copies of the pending jobs, in insertion order."""
        async with self._lock:
            return tuple(
                job.model_copy(deep=True)
                for job in self._jobs.values()
                if job.status is JobStatus.PENDING
            )

    async def update_job_status(
        self,
        job_id: str,
        status: JobStatus,
        error_code: str | None = None,
        error_message: str | None = None,
    ) -> ConversionJob | None:
        """
        Move a job to a new status.

        Args:
            job_id: Job identifier
            status: New job status
            error_code: Error code (for failures)
            error_message: Error message (for failures)

        Returns:
            Updated job or None if not found

        Raises:
            InvalidTransitionError: If the move is not allowed from the current status
        """
        async with self._lock:
            job = self._jobs.get(job_id)
            if not job:
                return None

            old_status = job.status
            if status not in TRANSITIONS[old_status]:
                raise InvalidTransitionError(
                    f"Job {job_id} cannot move from {old_status.value} to {status.value}"
                )
            job.status = status

            if status == JobStatus.CONVERTING:
                job.started_at = datetime.now()
            elif status in (JobStatus.DONE, JobStatus.ERROR):
                job.completed_at = datetime.now()

            if error_code:
                job.error_code = error_code
            if error_message:
                job.error_message = error_message

            logger.debug(
                "Job status updated",
                job_id=job_id,
                old_status=old_status.value,
                new_status=status.value,
            )

            return job

    async def run_pending(
        self,
        runner: BatchRunner,
        target_format: TargetFormat | str | None = None,
    ) -> list[ConversionResult]:
        """
        Run every pending job through the runner.

        Args:
            runner: Batch runner to execute the jobs
            target_format: If given, applied to all pending jobs first

        Returns:
            Results in job insertion order
        """
        if target_format is not None:
            await self.retarget(target_format)

        snapshot = await self.snapshot_pending()
        return await runner.run_batch(snapshot, on_status=self.update_job_status)
