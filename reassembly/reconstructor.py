"""Merges stored chunk text in part order and decodes it into the original bytes."""

import base64
import binascii
import logging
import re
import zlib

from common.constants import COMPRESSION_DEFLATE
from common.types import ChunkSetKey
from reassembly.chunk_store import ChunkStore
from reassembly.exceptions import DecodeError, InflateError, MissingChunkError

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def decode_payload(encoded: str, compression: str) -> bytes:
    """
    Decode merged chunk text.

    Args:
        encoded: Concatenated base64 text of every part
        compression: Lower-cased compression property; only 'deflate' inflates

    Returns:
        Artifact bytes

    Raises:
        DecodeError: If the text is not valid base64
        InflateError: If compression is 'deflate' and the stream is malformed
    """
    text = _WHITESPACE.sub("", encoded)
    # senders may drop trailing '=' padding
    text += "=" * (-len(text) % 4)
    try:
        data = base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Invalid base64 payload: {e}") from e

    if compression != COMPRESSION_DEFLATE:
        return data

    try:
        return zlib.decompress(data)
    except zlib.error as e:
        raise InflateError(f"Invalid deflate payload: {e}") from e


class Reconstructor:
    """
    Rebuilds an artifact from a complete chunk set.
    """

    def __init__(self, store: ChunkStore):
        self.store = store

    def merge_text(self, key: ChunkSetKey) -> str:
        """
        Concatenate stored text for parts 1..total_parts in order.

        Raises:
            MissingChunkError: If a part is not in the store
        """
        pieces = []
        for part_index in range(1, key.total_parts + 1):
            try:
                pieces.append(self.store.read_part(key, part_index))
            except FileNotFoundError as e:
                raise MissingChunkError(
                    f"Missing part {part_index} of {key.total_parts} for {key}"
                ) from e
        return "".join(pieces)

    def reconstruct(self, key: ChunkSetKey, compression: str) -> bytes:
        """
        Merge and decode a chunk set.

        Args:
            key: Complete chunk set
            compression: Compression property of the triggering message

        Returns:
            Artifact bytes

        Raises:
            MissingChunkError, DecodeError, InflateError
        """
        data = decode_payload(self.merge_text(key), compression)
        logger.debug(f"Reconstructed {len(data)} bytes for {key}")
        return data
