"""Common schemas used across multiple endpoints."""

from typing import Dict
from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Response model for liveness checks."""
    status: str
    service: str


class ReadyResponse(BaseModel):
    """Response model for readiness checks."""
    ready: bool
    storage: Dict[str, str]
