"""Manages chunk entries on disk: write/read/enumerate, atomic move and claim markers."""

import os
import uuid
from pathlib import Path
from typing import List, Optional, Tuple

from common.types import ChunkSetKey

CLAIM_SUFFIX = "claim"
STAGING_SUFFIX = ".tmp"


def parse_entry_name(name: str) -> Optional[Tuple[ChunkSetKey, int]]:
    """
    Recover the chunk set key and part index from an entry name.

    Args:
        name: Entry name of the form '<device>.<message>.<total>.<part>'

    Returns:
        (ChunkSetKey, part_index), or None if the name is not a chunk entry.
        A device id containing dots is ambiguous; the first dot is taken as
        the separator.
    """
    head, sep, tail = name.rpartition(".")
    if not sep or not tail.isdigit():
        return None
    head, sep, total = head.rpartition(".")
    if not sep or not total.isdigit():
        return None
    device_id, sep, message_id = head.partition(".")
    if not sep:
        return None
    return ChunkSetKey(device_id, message_id, int(total)), int(tail)


def is_staging_name(name: str) -> bool:
    """True for the hidden file a part is written to before it is renamed into place."""
    return name.startswith(".") and name.endswith(STAGING_SUFFIX)


class ChunkStore:
    """
    Filesystem-backed store of raw chunk text, addressed by ChunkSetKey and part index.

    Entries live flat in the temp area, named by ChunkSetKey.entry_name().
    Claim markers live in a separate area so that sweeping and counting
    never see them.
    """

    def __init__(self, temp_dir: Path, claims_dir: Path):
        """
        Initialize store.

        Args:
            temp_dir: Directory holding in-flight chunk entries
            claims_dir: Directory holding reconstruction claim markers
        """
        self.temp_dir = Path(temp_dir)
        self.claims_dir = Path(claims_dir)

    def ensure_directories(self) -> None:
        """Ensure temp and claims directories exist."""
        self.temp_dir.mkdir(parents=True, exist_ok=True)
        self.claims_dir.mkdir(parents=True, exist_ok=True)

    def entry_path(self, name: str) -> Path:
        return self.temp_dir / name

    def part_path(self, key: ChunkSetKey, part_index: int) -> Path:
        return self.entry_path(key.entry_name(part_index))

    def write_part(self, key: ChunkSetKey, part_index: int, text: str) -> Path:
        """
        Write chunk text for one part, replacing any previous copy.

        The text lands under a hidden temporary name first and is renamed
        into place, so readers never observe a half-written entry.

        Args:
            key: Chunk set the part belongs to
            part_index: Index of the part
            text: Raw chunk text, stored verbatim

        Returns:
            Path of the written entry

        Raises:
            OSError: If write operation fails
        """
        target = self.part_path(key, part_index)
        staging = self.temp_dir / f".{target.name}.{uuid.uuid4().hex}{STAGING_SUFFIX}"
        try:
            staging.write_text(text, encoding="utf-8")
            os.replace(staging, target)
        finally:
            staging.unlink(missing_ok=True)
        return target

    def read_part(self, key: ChunkSetKey, part_index: int) -> str:
        """
        Read chunk text for one part.

        Raises:
            FileNotFoundError: If the part is not stored
        """
        return self.part_path(key, part_index).read_text(encoding="utf-8")

    def list_parts(self, key: ChunkSetKey) -> List[int]:
        """
        List stored part indices for a chunk set.

        Args:
            key: Chunk set to enumerate

        Returns:
            Sorted part indices currently present in the temp area
        """
        prefix = key.prefix
        parts = []
        for name in self.list_entries():
            if name.startswith(prefix):
                suffix = name[len(prefix):]
                if suffix.isdigit():
                    parts.append(int(suffix))
        return sorted(parts)

    def list_entries(self) -> List[str]:
        """
        List every file name in the temp area.

        Returns:
            Entry names (empty if the temp area does not exist)
        """
        if not self.temp_dir.exists():
            return []
        with os.scandir(self.temp_dir) as it:
            return [entry.name for entry in it if entry.is_file()]

    def entry_mtime(self, name: str) -> float:
        """
        Get the modification time of an entry.

        Raises:
            FileNotFoundError: If the entry vanished
        """
        return self.entry_path(name).stat().st_mtime

    def delete_entry(self, name: str) -> bool:
        """
        Delete an entry from the temp area.

        Returns:
            True if the entry was deleted, False if it did not exist

        Raises:
            OSError: If deletion fails for any other reason
        """
        try:
            self.entry_path(name).unlink()
        except FileNotFoundError:
            return False
        return True

    def move_entry(self, name: str, destination_dir: Path) -> Path:
        """
        Atomically move an entry into another directory, keeping its name.

        Args:
            name: Entry name in the temp area
            destination_dir: Target directory (same filesystem)

        Returns:
            New path of the entry

        Raises:
            FileNotFoundError: If the entry vanished before the move
            OSError: If the rename fails
        """
        destination = Path(destination_dir) / name
        os.replace(self.entry_path(name), destination)
        return destination

    def claim_path(self, key: ChunkSetKey) -> Path:
        return self.claims_dir / f"{key.prefix}{CLAIM_SUFFIX}"

    def claim(self, key: ChunkSetKey) -> bool:
        """
        Try to take the reconstruction claim for a chunk set.

        Args:
            key: Chunk set to claim

        Returns:
            True if this caller now holds the claim, False if someone else does
        """
        try:
            fd = os.open(self.claim_path(key), os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            return False
        try:
            os.write(fd, f"{os.getpid()}\n".encode("ascii"))
        finally:
            os.close(fd)
        return True

    def release_claim(self, key: ChunkSetKey) -> bool:
        """
        Drop the reconstruction claim for a chunk set.

        Returns:
            True if a claim marker was removed
        """
        try:
            self.claim_path(key).unlink()
        except FileNotFoundError:
            return False
        return True

    def list_claims(self) -> List[Path]:
        if not self.claims_dir.exists():
            return []
        return [path for path in self.claims_dir.iterdir() if path.is_file()]
