#!/usr/bin/env python3
"""Client that ships build failure reports to a collector endpoint."""

import logging
from typing import Any

import httpx

from ..core.config import export_config

logger = logging.getLogger(__name__)


class ErrorReportError(Exception):
    """Raised when a report could not be delivered."""
    pass


class ErrorReportClient:
    """Posts failure reports as JSON: ``{filename, text, profile}``."""

    def __init__(
        self,
        url: str | None = None,
        timeout: float = 10,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url if url is not None else export_config.ERROR_REPORT_URL
        self._timeout = timeout
        self._transport = transport

    async def report(self, text: str, filename: str, serialized_profile: Any) -> None:
        """Deliver one report. A missing URL means reporting is disabled.

        Raises:
            ErrorReportError: If the collector rejects or cannot receive the report
        """
        if not self.url:
            logger.info(f"Error reporting disabled, dropping report {filename}")
            return

        payload = {"filename": filename, "text": text, "profile": serialized_profile}
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(self.url, json=payload)
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise ErrorReportError(f"Failed to deliver error report {filename}: {e}") from e

        logger.info(f"Delivered error report {filename}")
