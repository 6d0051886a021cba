#!/usr/bin/env python3
"""Data models for the Kaspa template bridge.

This module provides immutable data classes for the block templates
fetched from the node and relayed to downstream consumers.
"""

import copy
from dataclasses import dataclass
from typing import Any


def _as_int(header: dict[str, Any], key: str) -> int:
    value = header[key]
    # uint64 fields may arrive as JSON strings
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValueError(f"Header field {key} must be an integer, got {value!r}")
    return int(value)


def _as_str(header: dict[str, Any], key: str) -> str:
    value = header[key]
    if not isinstance(value, str):
        raise ValueError(f"Header field {key} must be a string, got {value!r}")
    return value


def _parse_parents(raw: Any) -> tuple[tuple[str, ...], ...]:
    """Normalize per-level parent hashes.

    Nodes return either ``[["h1", "h2"], ...]`` or
    ``[{"parentHashes": ["h1", "h2"]}, ...]``.
    """
    levels: list[tuple[str, ...]] = []
    for level in raw or ():
        if isinstance(level, dict):
            level = level.get("parentHashes", [])
        if not isinstance(level, list):
            raise ValueError(f"Invalid parents level: {level!r}")
        levels.append(tuple(str(h) for h in level))
    return tuple(levels)


@dataclass(frozen=True, slots=True)
class BlockHeader:
    """Header of a candidate block.

    Attributes:
        version: Block version
        parents: Parent hashes grouped by level
        hash_merkle_root: Merkle root of the block's transactions
        accepted_id_merkle_root: Merkle root of accepted transaction ids
        utxo_commitment: UTXO set commitment
        timestamp: Block timestamp in milliseconds
        bits: Compact difficulty target
        nonce: Header nonce (zero in a fresh template)
        daa_score: Difficulty adjustment score
        blue_work: Cumulative work score (hex string)
        blue_score: Cumulative blue score
        pruning_point: Hash of the pruning point
    """

    version: int
    parents: tuple[tuple[str, ...], ...]
    hash_merkle_root: str
    accepted_id_merkle_root: str
    utxo_commitment: str
    timestamp: int
    bits: int
    nonce: int
    daa_score: int
    blue_work: str
    blue_score: int
    pruning_point: str

    @classmethod
    def from_rpc(cls, header: dict[str, Any]) -> "BlockHeader":
        """Build a header from the node's camelCase JSON.

        Raises:
            ValueError: If a required field is missing or has the wrong type
        """
        if not isinstance(header, dict):
            raise ValueError(f"Header must be an object, got {type(header).__name__}")
        try:
            return cls(
                version=_as_int(header, "version"),
                parents=_parse_parents(header.get("parents", header.get("parentsByLevel"))),
                hash_merkle_root=_as_str(header, "hashMerkleRoot"),
                accepted_id_merkle_root=_as_str(header, "acceptedIdMerkleRoot"),
                utxo_commitment=_as_str(header, "utxoCommitment"),
                timestamp=_as_int(header, "timestamp"),
                bits=_as_int(header, "bits"),
                nonce=_as_int(header, "nonce"),
                daa_score=_as_int(header, "daaScore"),
                blue_work=_as_str(header, "blueWork"),
                blue_score=_as_int(header, "blueScore"),
                pruning_point=_as_str(header, "pruningPoint"),
            )
        except KeyError as e:
            raise ValueError(f"Header is missing field {e.args[0]}") from None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the node's camelCase shape for serialization."""
        return {
            "version": self.version,
            "parents": [list(level) for level in self.parents],
            "hashMerkleRoot": self.hash_merkle_root,
            "acceptedIdMerkleRoot": self.accepted_id_merkle_root,
            "utxoCommitment": self.utxo_commitment,
            "timestamp": self.timestamp,
            "bits": self.bits,
            "nonce": self.nonce,
            "daaScore": self.daa_score,
            "blueWork": self.blue_work,
            "blueScore": self.blue_score,
            "pruningPoint": self.pruning_point,
        }


@dataclass(frozen=True, slots=True)
class BlockTemplate:
    """A candidate next block as returned by ``getBlockTemplate``.

    Transactions are kept exactly as the node sent them, in node order.

    Attributes:
        header: The block header
        transactions: Raw transaction objects
        is_synced: Whether the node considered itself synced
    """

    header: BlockHeader
    transactions: tuple[dict[str, Any], ...]
    is_synced: bool = True

    def __str__(self) -> str:
        """Human-readable string representation."""
        return (
            f"BlockTemplate(daa_score={self.header.daa_score}, "
            f"blue_score={self.header.blue_score}, "
            f"txs={self.transaction_count})"
        )

    @property
    def transaction_count(self) -> int:
        return len(self.transactions)

    @classmethod
    def from_rpc(cls, payload: dict[str, Any]) -> "BlockTemplate":
        """Build a template from a ``getBlockTemplate`` result.

        The payload is deep-copied so the template never shares state
        with the caller.

        Raises:
            ValueError: If the payload is not a well-formed template
        """
        if not isinstance(payload, dict):
            raise ValueError(f"Template must be an object, got {type(payload).__name__}")

        block = payload.get("block")
        if not isinstance(block, dict):
            raise ValueError("Template response has no block")

        transactions = block.get("transactions", [])
        if not isinstance(transactions, list):
            raise ValueError("Block transactions must be a list")

        return cls(
            header=BlockHeader.from_rpc(block.get("header")),
            transactions=tuple(copy.deepcopy(transactions)),
            is_synced=bool(payload.get("isSynced", True)),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "block": {
                "header": self.header.to_dict(),
                "transactions": list(self.transactions),
            },
            "isSynced": self.is_synced,
        }
