"""Collision-safe placement of reconstructed artifacts in the output area."""

import logging
import os
import re
from pathlib import Path
from typing import Optional, Tuple

from common.constants import MAX_REVISION_ATTEMPTS
from common.types import FinalArtifact
from reassembly.exceptions import RevisionExhaustedError

logger = logging.getLogger(__name__)


def revision_pattern(artifact: FinalArtifact) -> "re.Pattern":
    """Regex matching '<base>.<n><ext>' names for an artifact."""
    return re.compile(
        rf"^{re.escape(artifact.base_name)}\.(\d+){re.escape(artifact.extension)}$"
    )


class NamingResolver:
    """
    Maps a target (directory, base name, extension) to a free output path and writes it.

    A name is taken with an exclusive create, so two resolutions racing for
    the same target end up on different revisions instead of overwriting.
    """

    def __init__(self, output_dir: Path, max_attempts: int = MAX_REVISION_ATTEMPTS):
        self.output_dir = Path(output_dir)
        self.max_attempts = max_attempts

    def directory_for(self, artifact: FinalArtifact) -> Path:
        return self.output_dir / artifact.directory

    def count_revisions(self, artifact: FinalArtifact) -> int:
        """
        Count existing revision files for an artifact.

        Returns:
            Number of files named '<base>.<n><ext>' in the target directory
        """
        directory = self.directory_for(artifact)
        if not directory.exists():
            return 0
        pattern = revision_pattern(artifact)
        return sum(1 for name in os.listdir(directory) if pattern.match(name))

    def _try_create(self, path: Path, data: bytes) -> bool:
        try:
            f = open(path, "xb")
        except FileExistsError:
            return False
        try:
            with f:
                f.write(data)
        except OSError:
            path.unlink(missing_ok=True)
            raise
        return True

    def write(self, artifact: FinalArtifact, data: bytes, log: Optional[logging.Logger] = None) -> Tuple[FinalArtifact, Path]:
        """
        Write artifact bytes under the first free name.

        Tries the plain name first. If taken, starts at revision
        count_revisions() + 1 and moves up on every conflict.

        Args:
            artifact: Target with revision 0
            data: Artifact bytes
            log: Logger for this invocation

        Returns:
            (artifact with its assigned revision, written path)

        Raises:
            RevisionExhaustedError: If no free name was found within max_attempts
            OSError: If the directory or file cannot be written
        """
        log = log or logger
        directory = self.directory_for(artifact)
        directory.mkdir(parents=True, exist_ok=True)

        candidate = artifact.with_revision(0)
        if not self._try_create(directory / candidate.file_name, data):
            revision = self.count_revisions(artifact) + 1
            for _ in range(self.max_attempts):
                candidate = artifact.with_revision(revision)
                if self._try_create(directory / candidate.file_name, data):
                    break
                log.debug(f"Revision {revision} of {artifact.file_name} already taken, trying next")
                revision += 1
            else:
                raise RevisionExhaustedError(
                    f"No free revision for {artifact.directory}/{artifact.file_name} "
                    f"after {self.max_attempts} attempts"
                )

        path = directory / candidate.file_name
        log.info(f"wrote out the file: {artifact.directory}/{candidate.file_name} ({len(data)} bytes)")
        return candidate, path
