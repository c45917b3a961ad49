from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ConnectionStatus(BaseModel):
    """Body of GET /api/test-connection (camelCase on the wire)."""

    connected: bool
    message: str
    voices_count: Optional[int] = Field(default=None, alias="voicesCount")
    error: Optional[Any] = None

    model_config = ConfigDict(populate_by_name=True)
