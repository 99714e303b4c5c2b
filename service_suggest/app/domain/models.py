"""
Suggestion models shared by the fetcher, the enrichment merger and the cache.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SuggestionType(str, Enum):
    """Kind of suggestion returned to the caller."""
    SEARCH = "search"
    ENTITY = "entity"


class Suggestion(BaseModel):
    """A search suggestion, optionally enriched with entity metadata."""

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    type: SuggestionType = Field(default=SuggestionType.SEARCH, description="Suggestion kind")
    title: str = Field(..., description="Display text, also the cache key")
    value: str = Field(..., description="Target URL")
    entity_image: Optional[str] = Field(default=None, alias="entityImage", description="Entity thumbnail URL")
    subtitle2: Optional[str] = Field(default=None, description="Entity type display hint")

    @classmethod
    def search(cls, title: str, url: str) -> "Suggestion":
        """Build a plain search suggestion."""
        return cls(type=SuggestionType.SEARCH, title=title, value=url)

    def to_wire(self) -> Dict[str, Any]:
        """Serialise with upstream field names, omitting absent entity fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


class EnrichmentResult(BaseModel):
    """Outcome of merging suggestions with cached enrichments."""
    suggestions: List[Suggestion]
    fully_enhanced: bool


class SuggestResponse(BaseModel):
    """Body returned by the suggestion endpoint."""
    q: str
    suggestions: List[Dict[str, Any]]
