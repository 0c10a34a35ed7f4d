"""Bounded polling of async report jobs."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Generic, Protocol, TypeVar

from pydantic import BaseModel

from crypto_account_reports.core.errors import JobFailedError, JobTimeoutError, RemoteServiceError, ReportError
from crypto_account_reports.core.models import Job, JobStatus

logger = logging.getLogger(__name__)

PayloadT = TypeVar("PayloadT", bound=BaseModel)

DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_MAX_ATTEMPTS = 60


class JobService(Protocol):
    """Job endpoints of the remote reporting service."""

    async def get_job(self, chain: str, job_id: str) -> Job: ...

    async def get_job_result(self, chain: str, job_id: str, schema: type[Any]) -> Any: ...


class PollConfig:
    """
    Configuration for job polling.

    Parameters
    ----------
    interval : float
        Fixed delay in seconds between status checks
    max_attempts : int
        Status checks before giving up

    """

    def __init__(self, interval: float = DEFAULT_POLL_INTERVAL, max_attempts: int = DEFAULT_MAX_ATTEMPTS) -> None:
        if max_attempts < 1:
            msg = "max_attempts must be at least 1"
            raise ValueError(msg)
        self.interval = interval
        self.max_attempts = max_attempts

    @property
    def budget_seconds(self) -> float:
        """Upper bound on time spent waiting between checks."""
        return self.interval * (self.max_attempts - 1)


class PollOutcome(Generic[PayloadT]):
    """
    Typed result of polling one job.

    Parameters
    ----------
    job_id : str
        Job identifier
    attempts : int
        Status checks performed
    waits : int
        Sleeps performed between checks
    payload : PayloadT | None
        Report payload on success
    error : ReportError | None
        Failure reason (JobFailedError or JobTimeoutError)

    """

    def __init__(
        self,
        job_id: str,
        attempts: int,
        waits: int,
        payload: PayloadT | None = None,
        error: ReportError | None = None,
    ) -> None:
        self.job_id = job_id
        self.attempts = attempts
        self.waits = waits
        self.payload = payload
        self.error = error

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> PayloadT:
        """
        Return the payload or raise the failure.

        Raises
        ------
        JobFailedError
            If the job failed on the server
        JobTimeoutError
            If the attempt ceiling was reached

        """
        if self.error is not None:
            raise self.error
        return self.payload  # type: ignore[return-value]


class JobPoller:
    """
    Polls a remote job until it completes, fails or the attempt ceiling is hit.

    ``QUEUED -> RUNNING -> COMPLETED | FAILED``. Status regressions reported
    by the server are ignored so the tracked state only moves forward. Remote
    errors while polling consume an attempt and are retried; nothing is
    retried once the ceiling is reached and the caller has to start over.

    Parameters
    ----------
    service : JobService
        Remote job endpoints
    config : PollConfig | None
        Interval and attempt ceiling
    sleep : Callable[[float], Awaitable[None]]
        Coroutine used to wait between checks

    """

    def __init__(
        self,
        service: JobService,
        config: PollConfig | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.service = service
        self.config = config or PollConfig()
        self.sleep = sleep

    async def poll(self, chain: str, job_id: str, schema: type[PayloadT]) -> PollOutcome[PayloadT]:
        """
        Poll a job and fetch its result.

        Parameters
        ----------
        chain : str
            Endpoint name of the chain family
        job_id : str
            Job identifier
        schema : type[PayloadT]
            Schema of the report payload

        Returns
        -------
        PollOutcome[PayloadT]
            Success with payload, or failure with the terminal error

        """
        state = JobStatus.QUEUED
        last_error: RemoteServiceError | None = None
        waits = 0

        logger.info("Polling job %s (max %d attempts)", job_id, self.config.max_attempts)

        for attempt in range(1, self.config.max_attempts + 1):
            try:
                job = await self.service.get_job(chain, job_id)
            except RemoteServiceError as e:
                last_error = e
                logger.warning("Job %s status check %d failed: %s", job_id, attempt, e)
            else:
                state = self._advance(state, job, job_id)

                if state is JobStatus.FAILED:
                    logger.error("Job %s failed: %s", job_id, job.error)
                    return PollOutcome(job_id, attempt, waits, error=JobFailedError(job_id, job.error))

                # Results are only fetched while the server itself reports completion.
                if job.status is JobStatus.COMPLETED:
                    try:
                        payload = await self.service.get_job_result(chain, job_id, schema)
                    except RemoteServiceError as e:
                        last_error = e
                        logger.warning("Job %s result fetch failed: %s", job_id, e)
                    else:
                        logger.info("Job %s completed after %d attempts", job_id, attempt)
                        return PollOutcome(job_id, attempt, waits, payload=payload)

            if attempt < self.config.max_attempts:
                await self.sleep(self.config.interval)
                waits += 1

        error = JobTimeoutError(job_id, self.config.max_attempts, self.config.interval)
        error.__cause__ = last_error
        return PollOutcome(job_id, self.config.max_attempts, waits, error=error)

    async def wait_for_result(self, chain: str, job_id: str, schema: type[PayloadT]) -> PayloadT:
        """Poll a job and return its payload, raising on failure or timeout."""
        outcome = await self.poll(chain, job_id, schema)
        return outcome.unwrap()

    @staticmethod
    def _advance(state: JobStatus, job: Job, job_id: str) -> JobStatus:
        if job.status.rank < state.rank:
            logger.warning("Job %s reported %s after %s; ignoring regression", job_id, job.status, state)
            return state

        progress = job.progress
        if progress is not None:
            logger.info(
                "Job %s progress: %d%% - %s - %s",
                job_id,
                progress.percentage,
                job.status,
                progress.message or "Processing...",
            )
        else:
            logger.debug("Job %s status: %s", job_id, job.status)
        return job.status
