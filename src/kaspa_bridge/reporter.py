"""
Periodic operator report of the current block template.
"""

import asyncio
import logging
import sys
from datetime import UTC, datetime
from typing import TextIO

from .models import BlockTemplate
from .template_store import TemplateStore

logger = logging.getLogger(__name__)

NO_TEMPLATE_MESSAGE = "No block template fetched yet."
SEPARATOR = "-" * 39


def render(template: BlockTemplate) -> str:
    """Render the header fields and transaction count as a text block."""
    header = template.header
    rows = [
        ("HashMerkleRoot", header.hash_merkle_root),
        ("AcceptedIDMerkleRoot", header.accepted_id_merkle_root),
        ("UTXOCommitment", header.utxo_commitment),
        ("Timestamp", header.timestamp),
        ("Bits", header.bits),
        ("Nonce", header.nonce),
        ("DAAScore", header.daa_score),
        ("BlueWork", header.blue_work),
        ("BlueScore", header.blue_score),
        ("PruningPoint", header.pruning_point),
        ("Transactions Length", template.transaction_count),
    ]
    lines = [f"{name:<22}: {value}" for name, value in rows]
    return "\n" + "\n".join(lines) + "\n" + SEPARATOR + "\n"


class Reporter:
    """
    Prints the latest template to an operator-facing stream.

    Reads the store at its own cadence. Templates stored between two reports
    are never shown; only the latest one at each sampling instant is.
    """

    def __init__(
        self,
        store: TemplateStore,
        interval: float = 5.0,
        stream: TextIO | None = None
    ):
        """
        Initialize the reporter.

        Args:
            store: Shared slot to read from
            interval: Seconds between reports
            stream: Output stream (defaults to stdout)
        """
        self.store = store
        self.interval = interval
        self.stream = stream if stream is not None else sys.stdout
        self.reports = 0

    def report_once(self) -> None:
        """Write one report. Rendering errors are logged and skipped."""
        template, updated_at = self.store.snapshot()
        if template is None:
            self.stream.write(NO_TEMPLATE_MESSAGE + "\n")
            self.stream.flush()
            return

        try:
            text = render(template)
        except Exception as e:
            logger.error(f"Failed to render block template: {e}", exc_info=True)
            return

        self.stream.write(text)
        self.stream.flush()
        self.reports += 1

        if updated_at is not None:
            age = (datetime.now(UTC) - updated_at).total_seconds()
            logger.debug(f"Reported template stored {age:.1f}s ago")

    async def run(self, shutdown_event: asyncio.Event) -> None:
        """
        Report every ``interval`` seconds until the shutdown event is set.

        Args:
            shutdown_event: Ends the loop when set
        """
        while not shutdown_event.is_set():
            try:
                await asyncio.wait_for(shutdown_event.wait(), timeout=self.interval)
                break
            except asyncio.TimeoutError:
                pass

            try:
                self.report_once()
            except OSError as e:
                logger.error(f"Failed to write template report: {e}")
