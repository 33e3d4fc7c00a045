"""Pydantic schemas for inbound chunk messages."""

from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class MessageProperties(BaseModel):
    """
    Per-chunk metadata attached by the device.

    Values are kept as sent; the chunk writer checks and converts them in
    a fixed order so the first missing property is the one reported.
    """
    model_config = ConfigDict(extra="allow")

    id: Optional[Any] = None
    filepath: Optional[Any] = None
    part: Optional[Any] = None
    maxPart: Optional[Any] = None
    compression: Optional[Any] = None


class Telemetry(BaseModel):
    """Telemetry payload carrying one base64 fragment."""
    model_config = ConfigDict(extra="allow")

    contentChunk: Optional[Any] = None


class ChunkUploadRequest(BaseModel):
    """Request model for one exported chunk message."""
    model_config = ConfigDict(extra="allow")

    deviceId: Optional[Any] = None
    messageProperties: Optional[MessageProperties] = Field(default_factory=MessageProperties)
    telemetry: Optional[Telemetry] = Field(default_factory=Telemetry)
