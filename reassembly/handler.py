"""Per-invocation processing of one chunk message."""

import logging
import time
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Union

from common.types import ChunkMessage, FinalArtifact, InvocationResult
from reassembly.chunk_store import ChunkStore
from reassembly.chunk_writer import ChunkWriter
from reassembly.cleanup import ChunkCleanup
from reassembly.completion import CompletionDetector
from reassembly.config import ReassemblyConfig
from reassembly.exceptions import ReassemblyError
from reassembly.expiry import ExpirySweeper
from reassembly.naming import NamingResolver
from reassembly.reconstructor import Reconstructor
from reassembly.schemas.messages import ChunkUploadRequest

logger = logging.getLogger(__name__)


class ChunkProcessor:
    """
    Runs the chunk lifecycle for one message at a time.

    Instances hold no per-message state and may be shared by concurrent
    invocations; coordination happens through the store's claim markers and
    exclusive file creation.
    """

    def __init__(
        self,
        config: ReassemblyConfig,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize processor components from a config.

        Args:
            config: Storage layout and policy
            sleep: Sleep used between cleanup attempts
            clock: Time source for expiry sweeps
        """
        self.config = config
        self.store = ChunkStore(config.temp_dir, config.claims_dir)
        self.writer = ChunkWriter(self.store)
        self.detector = CompletionDetector(self.store, config.completion_mode)
        self.reconstructor = Reconstructor(self.store)
        self.naming = NamingResolver(config.output_dir, config.max_revision_attempts)
        self.cleanup = ChunkCleanup(
            self.store,
            max_attempts=config.cleanup_max_attempts,
            retry_delay=config.cleanup_retry_delay,
            sleep=sleep
        )
        self.sweeper = ExpirySweeper(
            self.store,
            config.dead_letter_dir,
            expiry_seconds=config.expiry_seconds,
            clock=clock
        )

    def process(
        self,
        body: Union[ChunkUploadRequest, Mapping[str, Any]],
        log: Optional[logging.Logger] = None
    ) -> InvocationResult:
        """
        Handle one chunk message.

        Args:
            body: Parsed JSON body of the message
            log: Logger (or adapter) for this invocation

        Returns:
            InvocationResult with status 200 and empty body, or 500 and the error text
        """
        log = log or logger
        try:
            self.config.ensure_directories()
            message = self.writer.accept(body, log)
            if self.detector.is_complete(message.key):
                self.reassemble(message, log)
            result = InvocationResult(status=200)
        except ReassemblyError as e:
            log.error(f"Exception thrown: {e}")
            result = InvocationResult(status=500, body=str(e))
        except Exception as e:
            log.error(f"Exception thrown: {e}", exc_info=True)
            result = InvocationResult(status=500, body=str(e))

        self.sweeper.sweep(log)
        return result

    def reassemble(self, message: ChunkMessage, log: Optional[logging.Logger] = None) -> Optional[Path]:
        """
        Rebuild, place and clean up a complete chunk set.

        Only the invocation holding the set's claim does the work; the claim
        is dropped afterwards whether or not reconstruction succeeded, unless
        cleanup left parts behind. Such a claim stays until the expiry sweep
        releases it, so a re-delivered part cannot rebuild the set twice.

        Args:
            message: The chunk message that completed the set
            log: Logger for this invocation

        Returns:
            Path of the written artifact, or None if another invocation handled the set

        Raises:
            MissingChunkError, DecodeError, InflateError: If the payload cannot be rebuilt
        """
        log = log or logger
        key = message.key

        if not self.store.claim(key):
            log.info(f"Chunk set {key} is already being reconstructed by another invocation")
            return None

        hold_claim = False
        try:
            if not self.detector.is_complete(key):
                log.info(f"Chunk set {key} was already reconstructed by another invocation")
                return None

            data = self.reconstructor.reconstruct(key, message.compression)
            _, path = self.naming.write(FinalArtifact.from_target_path(message.target_path), data, log)

            abandoned = self.cleanup.cleanup(key, log)
            if abandoned:
                # leftover parts must not trigger a second artifact; the sweep reaps the claim
                hold_claim = True
                log.warning(
                    f"{len(abandoned)} part(s) of {key} left in the temp area, "
                    f"holding its claim until they expire"
                )
            return path
        finally:
            if not hold_claim:
                self.store.release_claim(key)
