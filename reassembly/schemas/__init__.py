"""Pydantic schemas for API requests and responses."""

from reassembly.schemas.messages import (
    ChunkUploadRequest,
    MessageProperties,
    Telemetry
)
from reassembly.schemas.common import HealthResponse, ReadyResponse

__all__ = [
    "ChunkUploadRequest",
    "MessageProperties",
    "Telemetry",
    "HealthResponse",
    "ReadyResponse"
]
