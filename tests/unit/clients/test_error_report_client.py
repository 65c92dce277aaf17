#!/usr/bin/env python3
"""
Unit tests for the error report client.
"""

import asyncio
import json

import httpx
import pytest

from bibframe_api.clients.error_report_client import ErrorReportClient, ErrorReportError


@pytest.mark.unit
class TestErrorReportClient:
    """Test suite for ErrorReportClient"""

    def test_posts_report(self):
        """Test the report is posted as JSON"""
        received = []

        def handler(request: httpx.Request) -> httpx.Response:
            received.append(json.loads(request.content))
            return httpx.Response(201)

        client = ErrorReportClient(url="https://reports.example.org/errors", transport=httpx.MockTransport(handler))

        asyncio.run(client.report("boom", "1_abc_2026-01-01_00-00-00.txt", '{"rtOrder": []}'))

        assert received == [{
            "filename": "1_abc_2026-01-01_00-00-00.txt",
            "text": "boom",
            "profile": '{"rtOrder": []}',
        }]

    def test_disabled_without_url(self):
        """Test nothing is sent when no URL is configured"""
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        client = ErrorReportClient(url="", transport=httpx.MockTransport(handler))

        asyncio.run(client.report("boom", "report.txt", "{}"))

    def test_rejected_report_raises(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(500))
        client = ErrorReportClient(url="https://reports.example.org/errors", transport=transport)

        with pytest.raises(ErrorReportError):
            asyncio.run(client.report("boom", "report.txt", "{}"))
