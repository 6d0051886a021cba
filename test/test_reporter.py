#!/usr/bin/env python3
"""Tests for the operator reporter."""

import asyncio
import io
import logging
from unittest.mock import patch

import pytest

from conftest import make_template
from kaspa_bridge.reporter import NO_TEMPLATE_MESSAGE, Reporter, render
from kaspa_bridge.template_store import TemplateStore


class TestRender:
    """Tests for the text rendering."""

    def test_render_fields(self, template):
        """Test every header field and the transaction count are shown."""
        text = render(template)

        assert f"HashMerkleRoot        : {'11' * 32}" in text
        assert f"AcceptedIDMerkleRoot  : {'22' * 32}" in text
        assert f"UTXOCommitment        : {'33' * 32}" in text
        assert "Timestamp             : 1718000000000" in text
        assert "Bits                  : 453027171" in text
        assert "Nonce                 : 0" in text
        assert "DAAScore              : 80123456" in text
        assert "BlueWork              : 8b1f3c4a2e" in text
        assert "BlueScore             : 78000001" in text
        assert f"PruningPoint          : {'44' * 32}" in text
        assert "Transactions Length   : 2" in text
        assert text.rstrip().endswith("-" * 39)


class TestReporter:
    """Tests for Reporter."""

    def test_placeholder_when_empty(self):
        """Test an empty store prints the placeholder line."""
        stream = io.StringIO()
        reporter = Reporter(TemplateStore(), stream=stream)

        reporter.report_once()

        assert stream.getvalue() == NO_TEMPLATE_MESSAGE + "\n"
        assert reporter.reports == 0

    def test_reports_latest_template(self):
        """Test only the latest of several stored templates is reported."""
        store = TemplateStore()
        stream = io.StringIO()
        reporter = Reporter(store, stream=stream)

        for daa_score in (101, 102, 103):
            store.set(make_template(daa_score=daa_score))
        reporter.report_once()

        output = stream.getvalue()
        assert "DAAScore              : 103" in output
        assert "DAAScore              : 101" not in output
        assert "DAAScore              : 102" not in output
        assert reporter.reports == 1

    def test_does_not_mutate_store(self, template):
        """Test reporting leaves the store unchanged."""
        store = TemplateStore()
        store.set(template)
        reporter = Reporter(store, stream=io.StringIO())

        reporter.report_once()

        assert store.get() is template
        assert store.updates == 1

    def test_render_error_is_logged_and_skipped(self, template, caplog):
        """Test a rendering failure is logged and nothing is written."""
        store = TemplateStore()
        store.set(template)
        stream = io.StringIO()
        reporter = Reporter(store, stream=stream)

        with patch("kaspa_bridge.reporter.render", side_effect=ValueError("bad field")):
            with caplog.at_level(logging.ERROR):
                reporter.report_once()

        assert stream.getvalue() == ""
        assert "Failed to render block template" in caplog.text

    @pytest.mark.asyncio
    async def test_run_reports_periodically(self, template):
        """Test the run loop reports until shutdown."""
        store = TemplateStore()
        store.set(template)
        stream = io.StringIO()
        reporter = Reporter(store, interval=0.01, stream=stream)
        shutdown = asyncio.Event()

        task = asyncio.create_task(reporter.run(shutdown))
        async with asyncio.timeout(2.0):
            while reporter.reports < 3:
                await asyncio.sleep(0.005)
        shutdown.set()
        await asyncio.wait_for(task, timeout=1.0)

        assert stream.getvalue().count("Transactions Length") >= 3

    @pytest.mark.asyncio
    async def test_run_survives_write_errors(self, template, caplog):
        """Test a failing output stream does not end the loop."""
        class BrokenStream(io.StringIO):
            def write(self, s):
                raise BrokenPipeError("stdout closed")

        store = TemplateStore()
        store.set(template)
        reporter = Reporter(store, interval=0.01, stream=BrokenStream())
        shutdown = asyncio.Event()

        with caplog.at_level(logging.ERROR):
            task = asyncio.create_task(reporter.run(shutdown))
            await asyncio.sleep(0.05)
            assert not task.done()
            shutdown.set()
            await asyncio.wait_for(task, timeout=1.0)

        assert "Failed to write template report" in caplog.text
