"""Shared fixtures for the bridge tests."""

import copy
from typing import Any

import pytest

from kaspa_bridge.models import BlockTemplate

SAMPLE_RPC_TEMPLATE: dict[str, Any] = {
    "block": {
        "header": {
            "version": 1,
            "parents": [
                {"parentHashes": ["a1" * 32, "b2" * 32]},
                {"parentHashes": ["c3" * 32]},
            ],
            "hashMerkleRoot": "11" * 32,
            "acceptedIdMerkleRoot": "22" * 32,
            "utxoCommitment": "33" * 32,
            "timestamp": 1718000000000,
            "bits": 453027171,
            "nonce": 0,
            "daaScore": 80123456,
            "blueWork": "8b1f3c4a2e",
            "blueScore": 78000001,
            "pruningPoint": "44" * 32,
        },
        "transactions": [
            {"version": 0, "inputs": [], "outputs": [{"amount": 1000}], "lockTime": 0},
            {"version": 0, "inputs": [{"sequence": 1}], "outputs": [], "lockTime": 0},
        ],
    },
    "isSynced": True,
}


def make_rpc_template(daa_score: int = 80123456, tx_count: int = 2) -> dict[str, Any]:
    """Build a node-shaped template payload with a given DAA score."""
    payload = copy.deepcopy(SAMPLE_RPC_TEMPLATE)
    payload["block"]["header"]["daaScore"] = daa_score
    payload["block"]["transactions"] = [
        {"version": 0, "inputs": [], "outputs": [], "lockTime": i} for i in range(tx_count)
    ]
    return payload


def make_template(daa_score: int = 80123456, tx_count: int = 2) -> BlockTemplate:
    return BlockTemplate.from_rpc(make_rpc_template(daa_score, tx_count))


@pytest.fixture
def rpc_template() -> dict[str, Any]:
    return copy.deepcopy(SAMPLE_RPC_TEMPLATE)


@pytest.fixture
def template() -> BlockTemplate:
    return make_template()
