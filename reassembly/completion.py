"""Decides whether every part of a chunk set has arrived."""

import logging

from common.constants import COMPLETION_MODE_COUNT, COMPLETION_MODE_INDEX_SET, COMPLETION_MODES
from common.types import ChunkSetKey
from reassembly.chunk_store import ChunkStore

logger = logging.getLogger(__name__)


class CompletionDetector:
    """
    Completion check over the parts stored for one chunk set.

    'count' compares the number of stored parts with total_parts, which a
    duplicate-plus-missing delivery can satisfy. 'index_set' requires every
    index 1..total_parts to be stored; stray indices such as 0 are ignored.
    """

    def __init__(self, store: ChunkStore, mode: str = COMPLETION_MODE_INDEX_SET):
        if mode not in COMPLETION_MODES:
            raise ValueError(f"Unknown completion mode: {mode}")
        self.store = store
        self.mode = mode

    def is_complete(self, key: ChunkSetKey) -> bool:
        """
        Check whether a chunk set is ready for reconstruction.

        Args:
            key: Chunk set to inspect

        Returns:
            True if the set is complete under the configured mode
        """
        parts = self.store.list_parts(key)

        if self.mode == COMPLETION_MODE_COUNT:
            return len(parts) == key.total_parts

        missing = set(range(1, key.total_parts + 1)).difference(parts)
        complete = not missing
        if missing and len(parts) >= key.total_parts:
            logger.warning(
                f"Chunk set {key} has {len(parts)} parts but indices {parts} "
                f"miss {sorted(missing)}, waiting for missing parts"
            )
        return complete
