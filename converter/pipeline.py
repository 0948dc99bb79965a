"""Batch orchestration over the conversion dispatcher."""

from typing import Awaitable, Iterable, Protocol

import structlog

from converter.dispatcher import ConversionDispatcher, output_name
from converter.errors import ConversionError
from converter.models import (
    ConversionJob,
    ConversionResult,
    JobStatus,
    OutputBlob,
    ResultStatus,
    TargetFormat,
)

logger = structlog.get_logger()


class StatusCallback(Protocol):
    def __call__(
        self,
        job_id: str,
        status: JobStatus,
        error_code: str | None = None,
        error_message: str | None = None,
    ) -> Awaitable[object]: ...


class BatchRunner:
    """
    Runs conversion jobs one at a time:
    1. Report the job as converting
    2. Convert through the dispatcher
    3. Wrap the output bytes as a blob
    4. Record a success or error result and report the final status

    A failing job never aborts the batch.
    """

    def __init__(self, dispatcher: ConversionDispatcher) -> None:
        self._dispatcher = dispatcher

    async def run_batch(
        self,
        jobs: Iterable[ConversionJob],
        on_status: StatusCallback | None = None,
    ) -> list[ConversionResult]:
        """
        Convert every job sequentially, preserving input order.

        Args:
            jobs: Jobs to run; deep-copied up front so later changes to the
                caller's list or its jobs do not affect the batch
            on_status: Optional async callback told about status transitions

        Returns:
            One result per job, in the same order as the input
        """
        snapshot = tuple(job.model_copy(deep=True) for job in jobs)
        results: list[ConversionResult] = []

        logger.info("Starting batch", job_count=len(snapshot))

        for index, job in enumerate(snapshot):
            result = await self._run_job(job, on_status)
            results.append(result)
            logger.debug(
                "Job finished",
                position=index,
                job_id=job.job_id,
                status=result.status.value,
            )

        failed = sum(1 for r in results if r.status is ResultStatus.ERROR)
        logger.info(
            "Batch completed",
            job_count=len(results),
            succeeded=len(results) - failed,
            failed=failed,
        )
        return results

    async def _run_job(
        self,
        job: ConversionJob,
        on_status: StatusCallback | None,
    ) -> ConversionResult:
        source = job.source
        await self._notify(on_status, job.job_id, JobStatus.CONVERTING)

        logger.info(
            "Converting file",
            job_id=job.job_id,
            file=source.name,
            mime_type=source.mime_type,
            target=job.target_format,
        )

        try:
            target = TargetFormat.parse(job.target_format)
            data = await self._dispatcher.convert(source, target)

        except ConversionError as e:
            # Known conversion errors
            logger.error(
                "Conversion failed",
                job_id=job.job_id,
                file=source.name,
                error_code=e.code,
                error_message=e.message,
            )
            return await self._fail(job, e.code, e.message, on_status)

        except Exception as e:
            # Unexpected errors
            logger.exception(
                "Conversion failed with unexpected error", job_id=job.job_id, file=source.name)
            return await self._fail(job, "UNEXPECTED_ERROR", str(e)[:500], on_status)

        blob = OutputBlob(data=data, mime_type=target.mime_type)
        result = ConversionResult(
            job_id=job.job_id,
            original_name=source.name,
            new_name=output_name(source.name, target),
            blob=blob,
            status=ResultStatus.SUCCESS,
        )
        await self._notify(on_status, job.job_id, JobStatus.DONE)

        logger.info(
            "Conversion succeeded",
            job_id=job.job_id,
            file=source.name,
            output=result.new_name,
            output_size_bytes=blob.size,
        )
        return result

    async def _fail(
        self,
        job: ConversionJob,
        error_code: str,
        error_message: str,
        on_status: StatusCallback | None,
    ) -> ConversionResult:
        await self._notify(
            on_status,
            job.job_id,
            JobStatus.ERROR,
            error_code=error_code,
            error_message=error_message,
        )
        return ConversionResult(
            job_id=job.job_id,
            original_name=job.source.name,
            status=ResultStatus.ERROR,
            error_code=error_code,
            error=error_message,
        )

    async def _notify(
        self,
        on_status: StatusCallback | None,
        job_id: str,
        status: JobStatus,
        **details: str,
    ) -> None:
        if on_status is None:
            return
        try:
            await on_status(job_id, status, **details)
        except Exception as e:
            # Log but don't fail - status reporting belongs to the host
            logger.error(
                "Status callback failed",
                job_id=job_id,
                status=status.value,
                error=str(e),
            )
