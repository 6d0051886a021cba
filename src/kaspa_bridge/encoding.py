"""
Canonical JSON encoding of block templates for publication.
"""

import json
import logging

from .exceptions import EncodingError
from .models import BlockTemplate

logger = logging.getLogger(__name__)


def encode_template(template: BlockTemplate) -> bytes:
    """
    Encode a template as compact UTF-8 JSON.

    Keys are kept in the node's order and whitespace is stripped so equal
    templates always produce identical payloads.

    Args:
        template: Template to encode

    Returns:
        The encoded payload

    Raises:
        EncodingError: If the template holds values JSON cannot represent
    """
    try:
        text = json.dumps(
            template.to_dict(),
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False
        )
        payload = text.encode("utf-8")
    except (TypeError, ValueError) as e:
        raise EncodingError(f"error serializing template to JSON: {e}") from e

    logger.debug(f"Encoded {template} into {len(payload)} bytes")
    return payload
