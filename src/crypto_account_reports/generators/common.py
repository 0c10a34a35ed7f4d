"""Helpers shared by the report generators."""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, TypeVar

from pydantic import BaseModel

from crypto_account_reports.core.models import ReportOptions
from crypto_account_reports.integrations.schemas import JobHandle

logger = logging.getLogger(__name__)

PayloadT = TypeVar("PayloadT", bound=BaseModel)


def current_date(today: date | None = None) -> str:
    """Format a date the way report headers show it (``October 19, 2026``)."""
    today = today or date.today()
    return f"{today:%B} {today.day}, {today.year}"


def format_amount(value: Decimal | int | str | None, places: int = 8) -> str:
    """
    Format an amount with a fixed number of decimal places.

    Parameters
    ----------
    value : Decimal | int | str | None
        Amount; None or blank is treated as zero
    places : int
        Decimal places

    Returns
    -------
    str
        Fixed-point string (e.g. ``0.10000000``)

    """
    if value is None or value == "":
        value = 0
    return f"{Decimal(str(value)):.{places}f}"


def truncate_address(address: str | None, head: int = 10, tail: int = 8) -> str:
    """Shorten long addresses to ``head...tail``; short ones are returned as is."""
    if not address:
        return ""
    if len(address) <= 20:
        return address
    return f"{address[:head]}...{address[-tail:]}"


def resolve_options(options: ReportOptions | None, defaults: ReportOptions) -> ReportOptions:
    """Fill unset caller options from the generator defaults."""
    if options is None:
        return defaults
    return options.with_defaults(defaults)


def extract_chain_id(network_id: str | None) -> str:
    """Chain id of an ``eip155:<id>`` network, ``Unknown`` otherwise."""
    if network_id and network_id.startswith("eip155:"):
        return network_id.removeprefix("eip155:")
    return "Unknown"


async def fetch_report(session: Any, chain: str, body: dict[str, Any], schema: type[PayloadT]) -> PayloadT:
    """
    Request a report and resolve an async job response through the poller.

    Parameters
    ----------
    session : WalletSession
        Session providing the reporting service and poll settings
    chain : str
        Endpoint name of the chain family
    body : dict[str, Any]
        JSON request body
    schema : type[PayloadT]
        Schema of the report payload

    Returns
    -------
    PayloadT
        Validated report payload

    Raises
    ------
    RemoteServiceError
        If the submit call fails
    JobFailedError
        If the queued job failed
    JobTimeoutError
        If the queued job did not finish within the attempt ceiling

    """
    service = session.require_reporting()
    response = await service.submit_report(chain, body, schema)

    if isinstance(response, JobHandle):
        outcome = await session.job_poller().poll(chain, response.job_id, schema)
        return outcome.unwrap()

    logger.info("Received %s report synchronously (LOD %s)", chain, getattr(response, "lod", None))
    return response
