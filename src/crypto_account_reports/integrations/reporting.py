"""Async client for the remote reporting service."""

import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from crypto_account_reports.config import DEFAULT_SERVER_URL
from crypto_account_reports.core.errors import RemoteServiceError
from crypto_account_reports.core.models import Job
from crypto_account_reports.integrations.schemas import JobHandle

logger = logging.getLogger(__name__)

PayloadT = TypeVar("PayloadT", bound=BaseModel)


class ReportingClient:
    """
    Client for the remote reporting REST API.

    One endpoint per chain family (``POST /reports/bitcoin``,
    ``POST /reports/ethereum``); long-running reports answer with a job id
    that is resolved through the ``/jobs`` endpoints. Every call is a single
    attempt: retries only happen in the job poller.

    Parameters
    ----------
    base_url : str
        API base URL (e.g. ``http://localhost:9001/api/v1``)
    timeout : float
        Request timeout in seconds
    transport : httpx.AsyncBaseTransport | None
        Custom transport (used to plug in mock transports)

    """

    def __init__(
        self,
        base_url: str = DEFAULT_SERVER_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    async def submit_report(
        self,
        chain: str,
        body: dict[str, Any],
        schema: type[PayloadT],
    ) -> PayloadT | JobHandle:
        """
        Request a report for a chain family.

        Parameters
        ----------
        chain : str
            Endpoint name of the chain family (``bitcoin``, ``ethereum``)
        body : dict[str, Any]
            JSON request body
        schema : type[PayloadT]
            Schema of a synchronous report payload

        Returns
        -------
        PayloadT | JobHandle
            The report payload, or a job handle when the server queued the work

        Raises
        ------
        RemoteServiceError
            On transport failures, non-success status codes or malformed payloads

        """
        logger.info("POST %s/reports/%s", self.base_url, chain)
        payload = await self._request("POST", f"/reports/{chain}", json=body)

        if isinstance(payload, dict) and payload.get("jobId"):
            handle = self._validate(JobHandle, payload, f"{chain} job handle")
            logger.info("Report queued as async job %s", handle.job_id)
            return handle

        return self._validate(schema, payload, f"{chain} report")

    async def get_job(self, chain: str, job_id: str) -> Job:
        """
        Fetch the status of an async report job.

        Parameters
        ----------
        chain : str
            Endpoint name of the chain family
        job_id : str
            Job identifier

        Returns
        -------
        Job
            Current job status

        """
        payload = await self._request("GET", f"/reports/{chain}/jobs/{job_id}")
        job = self._validate(Job, payload, f"{chain} job status")
        if not job.id:
            job = job.model_copy(update={"id": job_id})
        return job

    async def get_job_result(self, chain: str, job_id: str, schema: type[PayloadT]) -> PayloadT:
        """
        Fetch the payload of a completed job.

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
        PayloadT
            Validated report payload

        """
        payload = await self._request("GET", f"/reports/{chain}/jobs/{job_id}/result")
        return self._validate(schema, payload, f"{chain} job result")

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self.client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            msg = f"Request timeout: {method} {path}: {e}"
            raise RemoteServiceError(msg) from e
        except httpx.HTTPError as e:
            msg = f"HTTP request failed: {method} {path}: {e}"
            raise RemoteServiceError(msg) from e

        if not response.is_success:
            msg = f"Server returned {response.status_code}: {response.text}"
            raise RemoteServiceError(msg, status_code=response.status_code, body=response.text)

        try:
            return response.json()
        except ValueError as e:
            msg = f"Server returned invalid JSON for {method} {path}"
            raise RemoteServiceError(msg, status_code=response.status_code, body=response.text) from e

    @staticmethod
    def _validate(schema: type[PayloadT], payload: Any, what: str) -> PayloadT:
        try:
            return schema.model_validate(payload)
        except ValidationError as e:
            msg = f"Malformed {what} response: {e.error_count()} validation errors"
            raise RemoteServiceError(msg) from e

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> "ReportingClient":
        """Async context manager entry."""
        return self

    async def __aexit__(
        self,
        exc_type: type | None,
        exc_val: Exception | None,
        exc_tb: object | None,
    ) -> None:
        """Async context manager exit."""
        await self.aclose()
