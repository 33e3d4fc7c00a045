"""Deletes consumed chunk entries with a bounded retry."""

import logging
import time
from typing import Callable, List, Optional

from common.constants import CLEANUP_MAX_ATTEMPTS, CLEANUP_RETRY_DELAY_MS
from common.types import ChunkSetKey
from reassembly.chunk_store import ChunkStore
from reassembly.exceptions import CleanupError

logger = logging.getLogger(__name__)


class ChunkCleanup:
    """
    Removes every part of a reconstructed chunk set from the store.

    Each entry gets max_attempts tries with a fixed delay between them. An
    entry that still cannot be deleted is left for the expiry sweep.
    """

    def __init__(
        self,
        store: ChunkStore,
        max_attempts: int = CLEANUP_MAX_ATTEMPTS,
        retry_delay: float = CLEANUP_RETRY_DELAY_MS / 1000,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Initialize cleanup.

        Args:
            store: Chunk store holding the entries
            max_attempts: Tries per entry (default 2)
            retry_delay: Seconds to wait between tries (default 0.1)
            sleep: Sleep function, replaceable in tests
        """
        self.store = store
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self._sleep = sleep

    def delete_entry(self, name: str, log: Optional[logging.Logger] = None) -> None:
        """
        Delete one entry, retrying after a fixed delay.

        A missing entry counts as deleted.

        Raises:
            CleanupError: If every attempt failed
        """
        log = log or logger
        for attempt in range(1, self.max_attempts + 1):
            try:
                self.store.delete_entry(name)
                return
            except OSError as e:
                if attempt < self.max_attempts:
                    log.warning(
                        f"Failure whilst cleaning up a temporary file (attempt {attempt}/{self.max_attempts}), "
                        f"retrying in {self.retry_delay}s: {name} - {e}"
                    )
                    self._sleep(self.retry_delay)
                else:
                    raise CleanupError(f"Error whilst cleaning up a temporary file: {name} - {e}") from e

    def cleanup(self, key: ChunkSetKey, log: Optional[logging.Logger] = None) -> List[str]:
        """
        Delete parts 1..total_parts of a chunk set.

        Args:
            key: Reconstructed chunk set
            log: Logger for this invocation

        Returns:
            Names of entries that were abandoned after all attempts
        """
        log = log or logger
        abandoned = []
        for part_index in range(1, key.total_parts + 1):
            name = key.entry_name(part_index)
            try:
                self.delete_entry(name, log)
            except CleanupError as e:
                log.error(f"{e}, leaving it for dead-letter sweep")
                abandoned.append(name)
        return abandoned
