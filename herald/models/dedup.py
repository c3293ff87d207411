"""Data models for the announcement dedup store."""

from datetime import datetime, timezone

from pydantic import BaseModel, Field, ConfigDict


class AnnouncedPackage(BaseModel):
    """Minimal package payload kept alongside a dedup record"""

    name: str
    version: str
    description: str = ""
    url: str = ""


class DedupRecord(BaseModel):
    """Durable proof that a package version was announced"""

    model_config = ConfigDict(protected_namespaces=())

    key: str = Field(..., min_length=3)  # name@version
    message: str
    package: AnnouncedPackage
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class PublishStats(BaseModel):
    """Publish pipeline statistics"""

    model_config = ConfigDict(protected_namespaces=())

    checked: int = 0
    posted: int = 0
    duplicates: int = 0
    post_failures: int = 0
    errors: int = 0

    @property
    def duplicate_rate(self) -> float:
        """Share of checked packages that were already announced"""
        if self.checked == 0:
            return 0.0
        return self.duplicates / self.checked
