"""Configuration settings for the reassembly service."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from common.constants import (
    CLAIMS_DIR_NAME,
    CLEANUP_MAX_ATTEMPTS,
    CLEANUP_RETRY_DELAY_MS,
    COMPLETION_MODE_INDEX_SET,
    COMPLETION_MODES,
    DEAD_LETTER_DIR_NAME,
    DEAD_LETTER_EXPIRE_HOURS,
    DEFAULT_BASE_DIR,
    DEFAULT_HOST,
    DEFAULT_PORT,
    MAX_REVISION_ATTEMPTS,
    OUTPUT_DIR_NAME,
    TEMP_DIR_NAME,
)

ENV_PREFIX = "REASSEMBLY_"


@dataclass(frozen=True)
class ReassemblyConfig:
    """
    Storage layout and policy knobs, fixed at startup.
    """
    temp_dir: Path
    output_dir: Path
    dead_letter_dir: Path
    claims_dir: Path
    expiry_hours: float = DEAD_LETTER_EXPIRE_HOURS
    cleanup_max_attempts: int = CLEANUP_MAX_ATTEMPTS
    cleanup_retry_delay: float = CLEANUP_RETRY_DELAY_MS / 1000
    completion_mode: str = COMPLETION_MODE_INDEX_SET
    max_revision_attempts: int = MAX_REVISION_ATTEMPTS
    sweep_interval_seconds: float = 0
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    def __post_init__(self):
        if self.completion_mode not in COMPLETION_MODES:
            raise ValueError(
                f"Unknown completion mode '{self.completion_mode}', expected one of {COMPLETION_MODES}"
            )
        if self.expiry_hours <= 0:
            raise ValueError("expiry_hours must be positive")
        if self.cleanup_max_attempts < 1:
            raise ValueError("cleanup_max_attempts must be at least 1")
        if self.cleanup_retry_delay < 0:
            raise ValueError("cleanup_retry_delay must not be negative")

    @property
    def expiry_seconds(self) -> float:
        return self.expiry_hours * 3600

    @classmethod
    def for_base_dir(cls, base_dir, **overrides) -> "ReassemblyConfig":
        """
        Build a config with the standard layout under one base directory.

        Args:
            base_dir: Root holding the temp, output, dead-letter and claims areas
            **overrides: Any other field of ReassemblyConfig

        Returns:
            ReassemblyConfig instance
        """
        base = Path(base_dir)
        layout = {
            "temp_dir": base / TEMP_DIR_NAME,
            "output_dir": base / OUTPUT_DIR_NAME,
            "dead_letter_dir": base / DEAD_LETTER_DIR_NAME,
            "claims_dir": base / CLAIMS_DIR_NAME,
        }
        layout.update(overrides)
        return cls(**layout)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ReassemblyConfig":
        """
        Build a config from REASSEMBLY_* environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            ReassemblyConfig instance

        Raises:
            ValueError: If a numeric value or the completion mode is invalid
        """
        env = os.environ if environ is None else environ

        def get(name: str, default=None):
            return env.get(f"{ENV_PREFIX}{name}", default)

        base = Path(get("BASE_DIR", DEFAULT_BASE_DIR))
        overrides = {}
        for name, field_name in (
            ("TEMP_DIR", "temp_dir"),
            ("OUTPUT_DIR", "output_dir"),
            ("DEAD_LETTER_DIR", "dead_letter_dir"),
            ("CLAIMS_DIR", "claims_dir"),
        ):
            value = get(name)
            if value:
                overrides[field_name] = Path(value)

        return cls.for_base_dir(
            base,
            expiry_hours=float(get("EXPIRY_HOURS", DEAD_LETTER_EXPIRE_HOURS)),
            cleanup_max_attempts=int(get("CLEANUP_MAX_ATTEMPTS", CLEANUP_MAX_ATTEMPTS)),
            cleanup_retry_delay=int(get("CLEANUP_RETRY_DELAY_MS", CLEANUP_RETRY_DELAY_MS)) / 1000,
            completion_mode=get("COMPLETION_MODE", COMPLETION_MODE_INDEX_SET).lower(),
            max_revision_attempts=int(get("MAX_REVISION_ATTEMPTS", MAX_REVISION_ATTEMPTS)),
            sweep_interval_seconds=float(get("SWEEP_INTERVAL_SECONDS", 0)),
            host=get("HOST", DEFAULT_HOST),
            port=int(get("PORT", DEFAULT_PORT)),
            **overrides,
        )

    def storage_dirs(self):
        return (self.temp_dir, self.output_dir, self.dead_letter_dir, self.claims_dir)

    def ensure_directories(self) -> None:
        """Create every storage area that does not exist yet."""
        for directory in self.storage_dirs():
            directory.mkdir(parents=True, exist_ok=True)
