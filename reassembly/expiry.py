"""Moves stale chunk entries to the dead-letter area and reaps stale claims."""

import logging
import time
from pathlib import Path
from typing import Callable, Optional

from common.constants import DEAD_LETTER_EXPIRE_HOURS
from common.types import SweepReport
from reassembly.chunk_store import ChunkStore, is_staging_name, parse_entry_name
from reassembly.exceptions import SweepError

logger = logging.getLogger(__name__)


class ExpirySweeper:
    """
    Entry-by-entry expiry of the temp area.

    Has no notion of chunk sets: a set whose parts straddle the threshold is
    dead-lettered piecemeal.
    """

    def __init__(
        self,
        store: ChunkStore,
        dead_letter_dir: Path,
        expiry_seconds: float = DEAD_LETTER_EXPIRE_HOURS * 3600,
        clock: Callable[[], float] = time.time
    ):
        self.store = store
        self.dead_letter_dir = Path(dead_letter_dir)
        self.expiry_seconds = expiry_seconds
        self._clock = clock

    def _expire(self, name: str, cutoff: float, log: logging.Logger) -> Optional[str]:
        """
        Expire one temp-area file if it is older than the cutoff.

        Chunk entries and unrecognised files are moved to the dead-letter
        area. A staging file left by an interrupted write holds no complete
        part and is deleted instead. A file that vanished since listing was
        consumed by cleanup and is skipped.

        Returns:
            'moved', 'discarded', or None if the file was left in place

        Raises:
            SweepError: If the file could not be moved or deleted
        """
        try:
            if self.store.entry_mtime(name) >= cutoff:
                return None
            if is_staging_name(name):
                self.store.delete_entry(name)
                return "discarded"
            if parse_entry_name(name) is None:
                log.warning(f"Dead-lettering {name}, which is not a chunk entry")
            self.store.move_entry(name, self.dead_letter_dir)
        except FileNotFoundError:
            logger.debug(f"Entry {name} disappeared before dead-lettering")
            return None
        except OSError as e:
            raise SweepError(f"{name} - {e}") from e
        return "moved"

    def sweep(self, log: Optional[logging.Logger] = None) -> SweepReport:
        """
        Run one sweep pass over the temp area.

        Failures are logged per entry and never raised.

        Args:
            log: Logger for this invocation

        Returns:
            SweepReport with moved, failed and discarded names and released claims
        """
        log = log or logger
        report = SweepReport()
        cutoff = self._clock() - self.expiry_seconds

        try:
            self.dead_letter_dir.mkdir(parents=True, exist_ok=True)
            names = self.store.list_entries()
        except OSError as e:
            log.warning(f"Exception occurred during dead-letter cleanup. Details: {e}")
            return report

        for name in names:
            try:
                outcome = self._expire(name, cutoff, log)
                if outcome == "moved":
                    report.moved.append(name)
                elif outcome == "discarded":
                    report.discarded.append(name)
            except SweepError as e:
                log.warning(f"Exception occurred during dead-letter cleanup. Details: {e}")
                report.failed.append(name)

        try:
            claims = self.store.list_claims()
        except OSError as e:
            log.warning(f"Could not list reconstruction claims: {e}")
            claims = []

        for path in claims:
            try:
                if path.stat().st_mtime < cutoff:
                    path.unlink()
                    report.released_claims.append(path.name)
            except OSError as e:
                log.warning(f"Could not release stale claim {path.name}: {e}")

        if report.moved:
            log.info(f"Dead-lettered {len(report.moved)} expired chunk entries")
        if report.discarded:
            log.info(f"Removed {len(report.discarded)} abandoned staging files")
        if report.released_claims:
            log.warning(f"Released {len(report.released_claims)} stale reconstruction claims")
        return report
