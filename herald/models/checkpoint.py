"""Data models for checkpoint system."""

from datetime import datetime

from pydantic import BaseModel, Field, ConfigDict


class Checkpoint(BaseModel):
    """Last successfully processed point in the registry change feed"""

    model_config = ConfigDict(protected_namespaces=())

    cursor: int = Field(..., ge=0)  # epoch milliseconds
    updated_at: datetime = Field(default_factory=datetime.now)
