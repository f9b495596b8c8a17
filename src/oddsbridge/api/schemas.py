"""Pydantic schemas for the HTTP app: health and error bodies."""

from __future__ import annotations

from pydantic import BaseModel, Field


# --- Health ---
class HealthResponse(BaseModel):
    status: str = "ok"
    servers: list[str] = Field(default_factory=list)
    tools: dict[str, int] = Field(default_factory=dict, description="Tool count per server")
    active_sessions: int = 0


# --- Error (consistent shape for 4xx/5xx) ---
class ErrorResponse(BaseModel):
    detail: str = Field(..., description="Human-readable message")
    code: str | None = Field(None, description="Machine-readable code, e.g. unknown_server, no_session")
