"""Data models for registry packages."""

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field


class NormalizedPackage(BaseModel):
    """Canonical representation of a registry item.

    Derived once per raw registry document, before filtering.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    version: str = Field(..., min_length=1)
    keywords: List[str] = Field(default_factory=list)
    url: str
    description: str = ""

    @property
    def key(self) -> str:
        """Identity key used for deduplication (`name@version`)."""
        return f"{self.name}@{self.version}"

    def template_data(self) -> Dict[str, Any]:
        """Values available to the outbound message template."""
        return {
            "name": self.name,
            "version": self.version,
            "url": self.url,
            "description": self.description,
            "keywords": ", ".join(self.keywords),
            "key": self.key,
        }
