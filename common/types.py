"""Shared data type definitions (ChunkSetKey, ChunkMessage, FinalArtifact, etc.)."""

import os
from dataclasses import dataclass, field
from typing import List


@dataclass(frozen=True)
class ChunkSetKey:
    """
    Identity shared by every part of one logical file.
    """
    device_id: str
    message_id: str
    total_parts: int

    @property
    def prefix(self) -> str:
        """Entry-name prefix common to all parts of this set."""
        return f"{self.device_id}.{self.message_id}.{self.total_parts}."

    def entry_name(self, part_index: int) -> str:
        return f"{self.prefix}{part_index}"

    def __str__(self) -> str:
        return f"{self.device_id}/{self.message_id}/{self.total_parts}"


@dataclass(frozen=True)
class ChunkMessage:
    """
    One validated inbound chunk.
    """
    device_id: str
    message_id: str
    target_path: str
    part_index: int
    total_parts: int
    compression: str
    payload_text: str

    @property
    def key(self) -> ChunkSetKey:
        return ChunkSetKey(self.device_id, self.message_id, self.total_parts)


@dataclass(frozen=True)
class FinalArtifact:
    """
    Resolved placement of a reconstructed file inside the output area.

    Attributes:
        directory: Directory component of the target path ('.' for none)
        base_name: File name without its last extension
        extension: Last extension including the leading dot, or ''
        revision: 0 for the plain name, otherwise the numeric suffix
    """
    directory: str
    base_name: str
    extension: str
    revision: int = 0

    @classmethod
    def from_target_path(cls, target_path: str) -> "FinalArtifact":
        directory = os.path.dirname(target_path) or "."
        filename = os.path.basename(os.path.normpath(target_path))
        base_name, extension = os.path.splitext(filename)
        return cls(directory=directory, base_name=base_name, extension=extension)

    @property
    def file_name(self) -> str:
        if self.revision == 0:
            return f"{self.base_name}{self.extension}"
        return f"{self.base_name}.{self.revision}{self.extension}"

    def with_revision(self, revision: int) -> "FinalArtifact":
        return FinalArtifact(self.directory, self.base_name, self.extension, revision)


@dataclass
class SweepReport:
    """
    Outcome of one expiry sweep pass.
    """
    moved: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    discarded: List[str] = field(default_factory=list)
    released_claims: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class InvocationResult:
    """
    Status and plain-text body returned for one chunk message.
    """
    status: int
    body: str = ""

    @property
    def ok(self) -> bool:
        return self.status == 200
