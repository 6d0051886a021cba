#!/usr/bin/env python3
"""Tests for the single-slot template store."""

import threading
from datetime import datetime

from conftest import make_template
from kaspa_bridge.template_store import TemplateStore


class TestTemplateStore:
    """Tests for TemplateStore get/set semantics."""

    def test_empty_store(self):
        """Test a new store reports no template."""
        store = TemplateStore()

        assert store.get() is None
        assert store.snapshot() == (None, None)
        assert store.updates == 0

    def test_set_then_get(self, template):
        """Test get returns the value just set."""
        store = TemplateStore()
        store.set(template)

        assert store.get() is template
        assert store.updates == 1

    def test_snapshot_has_timestamp(self, template):
        """Test snapshot returns the template with its store time."""
        store = TemplateStore()
        store.set(template)

        stored, updated_at = store.snapshot()

        assert stored is template
        assert isinstance(updated_at, datetime)
        assert updated_at.tzinfo is not None

    def test_latest_value_wins(self):
        """Test only the most recent of several sets is observed."""
        store = TemplateStore()
        t1, t2, t3 = make_template(1), make_template(2), make_template(3)

        store.set(t1)
        store.set(t2)
        store.set(t3)

        assert store.get() is t3
        assert store.updates == 3

    def test_concurrent_set_and_get(self):
        """Test readers only ever see None or a template that was set."""
        store = TemplateStore()
        templates = [make_template(daa_score=i, tx_count=1) for i in range(200)]
        written = {id(t) for t in templates}
        observed: list[object] = []
        errors: list[str] = []

        def writer():
            for t in templates:
                store.set(t)

        def reader():
            for _ in range(2000):
                value = store.get()
                if value is not None and id(value) not in written:
                    errors.append(f"unexpected value {value!r}")
                observed.append(value)

        threads = [threading.Thread(target=writer), threading.Thread(target=reader)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert not errors
        assert store.get() is templates[-1]
        assert all(v is None or v.transaction_count == 1 for v in observed)
