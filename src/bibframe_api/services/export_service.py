#!/usr/bin/env python3
"""
Export service: runs profile builds and recovers from their failures.

In developer mode a failing build raises straight through. Otherwise the
service keeps the last profile that built successfully, hands it to the
recovery hook when a build fails, ships a diagnostic report, and returns
``None`` so callers can tell "nothing was produced" apart from an empty
but valid document.
"""

import copy
import json
import logging
import time
import traceback
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable

from ..clients.error_report_client import ErrorReportClient, ErrorReportError
from ..clients.ontology_client import OntologyClient
from ..clients.policy_client import PolicyClient
from ..core.config import export_config
from .domain.rdf_xml.builder import BuildContext, ProfileXmlBuilder
from .domain.rdf_xml.policy import PolicyLookupService
from .domain.rdf_xml.serializer import XmlBuildResult
from .domain.rdf_xml.type_oracle import TypeOracle

logger = logging.getLogger(__name__)

RecoveryHook = Callable[[dict | None, float | None], None]
BuilderFactory = Callable[[BuildContext], ProfileXmlBuilder]


class ExportState(str, Enum):
    """Lifecycle of the most recent build."""
    IDLE = "idle"
    BUILDING = "building"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ConfiguredBuilderFactory:
    """Creates one builder per request around long-lived lookup services.

    Every builder made by one factory shares the ontology client's range
    cache and the fetched policy vocabularies.
    """

    def __init__(
        self,
        ontology_client: OntologyClient | None = None,
        policy_client: PolicyClient | None = None,
    ):
        self.type_oracle = TypeOracle(ontology_client or OntologyClient())
        self.policy_service = PolicyLookupService(client=policy_client or PolicyClient())

    def __call__(self, context: BuildContext) -> ProfileXmlBuilder:
        return ProfileXmlBuilder.from_config(
            context,
            type_oracle=self.type_oracle,
            policy_service=self.policy_service,
        )


def report_filename(timestamp: float, initials: str) -> str:
    """Name of the report file for a failure at timestamp.

    Example:
        >>> report_filename(0, "abc")
        '0_abc_1970-01-01_00-00-00.txt'
    """
    moment = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    return f"{int(timestamp)}_{initials or 'unknown'}_{moment:%Y-%m-%d}_{moment:%H-%M-%S}.txt"


def build_report_text(error: BaseException, profile: Any, context: BuildContext, timestamp: float) -> str:
    """Human readable diagnostic report for a failed build."""
    eid = profile.get("eId") if isinstance(profile, dict) else None
    lines = [
        f"Export failed at {datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()}",
        f"Cataloger: {context.cataloger_initials or '-'} ({context.cataloger_code or '-'})",
        f"Record: {eid or '-'}",
        f"Error: {type(error).__name__}: {error}",
        "",
        "".join(traceback.format_exception(type(error), error, error.__traceback__)),
    ]
    return "\n".join(lines)


def serialize_profile(profile: Any) -> str:
    try:
        return json.dumps(profile, default=str)
    except (TypeError, ValueError):
        return repr(profile)


class ExportService:
    """Runs builds and owns the last-known-good snapshot."""

    def __init__(
        self,
        builder_factory: BuilderFactory | None = None,
        dev_mode: bool | None = None,
        error_reporter: ErrorReportClient | None = None,
        recovery_hook: RecoveryHook | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.builder_factory = builder_factory or ConfiguredBuilderFactory()
        self.dev_mode = export_config.DEV_MODE if dev_mode is None else dev_mode
        self.error_reporter = error_reporter or ErrorReportClient()
        self.recovery_hook = recovery_hook
        self.clock = clock

        self.state = ExportState.IDLE
        self.last_good_profile: dict | None = None
        self.last_good_timestamp: float | None = None
        self.last_error: str | None = None

    async def build_xml(self, profile: Any, context: BuildContext | None = None) -> XmlBuildResult | None:
        """Build all RDF/XML outputs for a profile.

        Args:
            profile: Editor profile
            context: Per-request values (cataloger identity, focused barcode)

        Returns:
            XmlBuildResult, or None when the build failed outside dev mode

        Raises:
            Exception: Whatever the build raised, in dev mode only
        """
        context = context or BuildContext.from_config()
        self.state = ExportState.BUILDING

        try:
            result = await self.builder_factory(context).build(profile)
        except Exception as e:
            self.state = ExportState.FAILED
            self.last_error = str(e)
            if self.dev_mode:
                raise
            logger.error(f"Export build failed: {e}", exc_info=True)
            await self._recover(e, profile, context)
            return None

        self.state = ExportState.SUCCEEDED
        self.last_error = None
        self.last_good_profile = copy.deepcopy(profile)
        self.last_good_timestamp = self.clock()
        return result

    async def _recover(self, error: Exception, profile: Any, context: BuildContext) -> None:
        if self.recovery_hook is not None:
            try:
                self.recovery_hook(self.last_good_profile, self.last_good_timestamp)
            except Exception as hook_error:
                logger.error(f"Recovery hook failed: {hook_error}")

        timestamp = self.clock()
        filename = report_filename(timestamp, context.cataloger_initials)
        text = build_report_text(error, profile, context, timestamp)
        try:
            await self.error_reporter.report(text, filename, serialize_profile(profile))
        except ErrorReportError as report_error:
            logger.error(f"Could not deliver error report {filename}: {report_error}")
