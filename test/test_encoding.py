#!/usr/bin/env python3
"""Tests for template encoding."""

import json

import pytest

from conftest import make_rpc_template
from kaspa_bridge.encoding import encode_template
from kaspa_bridge.exceptions import EncodingError
from kaspa_bridge.models import BlockTemplate


class TestEncodeTemplate:
    """Tests for encode_template."""

    def test_encodes_compact_json(self, template):
        """Test the payload is compact JSON of the node-shaped dict."""
        payload = encode_template(template)

        assert isinstance(payload, bytes)
        assert b" " not in payload
        assert json.loads(payload) == template.to_dict()

    def test_equal_templates_encode_identically(self):
        """Test encoding is deterministic."""
        first = BlockTemplate.from_rpc(make_rpc_template(42))
        second = BlockTemplate.from_rpc(make_rpc_template(42))

        assert encode_template(first) == encode_template(second)

    def test_unserializable_transaction(self):
        """Test a transaction holding a non-JSON value is an EncodingError."""
        payload = make_rpc_template()
        payload["block"]["transactions"][0]["payload"] = {1, 2, 3}
        template = BlockTemplate.from_rpc(payload)

        with pytest.raises(EncodingError, match="error serializing template"):
            encode_template(template)

    def test_nan_is_rejected(self):
        """Test NaN values are refused rather than emitted as invalid JSON."""
        payload = make_rpc_template()
        payload["block"]["transactions"][0]["mass"] = float("nan")
        template = BlockTemplate.from_rpc(payload)

        with pytest.raises(EncodingError):
            encode_template(template)
