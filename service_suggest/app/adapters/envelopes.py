"""
Decoding of upstream search API envelopes.

Every payload is classified as exactly one of ``ErrorEnvelope``,
``SuggestionEnvelope`` or ``EntityEnvelope`` before any field is read.
Payloads that fit none of them raise ``UpstreamResponseError``.
"""

from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from shared.errors import UpstreamResponseError

ERROR_RESPONSE_TYPE = "ErrorResponse"
RATE_LIMIT_CODE = "RateLimitExceeded"
DOMINANT_ENTITY = "DominantEntity"


class _Envelope(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class UpstreamError(_Envelope):
    code: str
    message: Optional[str] = None


class ErrorEnvelope(_Envelope):
    type: str = Field(alias="_type")
    errors: List[UpstreamError] = Field(min_length=1)

    @property
    def code(self) -> str:
        return self.errors[0].code

    @property
    def is_rate_limited(self) -> bool:
        return self.code == RATE_LIMIT_CODE


class RawSuggestion(_Envelope):
    display_text: str = Field(alias="displayText")
    url: str


class SuggestionGroup(_Envelope):
    search_suggestions: Optional[List[RawSuggestion]] = Field(default=None, alias="searchSuggestions")


class SuggestionEnvelope(_Envelope):
    suggestion_groups: List[SuggestionGroup] = Field(alias="suggestionGroups")

    def raw_suggestions(self) -> List[RawSuggestion]:
        """Suggestions of the first group, in upstream order."""
        if not self.suggestion_groups:
            return []
        return self.suggestion_groups[0].search_suggestions or []


class EntityImage(_Envelope):
    thumbnail_url: Optional[str] = Field(default=None, alias="thumbnailUrl")


class EntityPresentationInfo(_Envelope):
    entity_scenario: str = Field(alias="entityScenario")
    entity_type_display_hint: Optional[str] = Field(default=None, alias="entityTypeDisplayHint")


class Entity(_Envelope):
    name: str
    web_search_url: str = Field(alias="webSearchUrl")
    image: Optional[EntityImage] = None
    entity_presentation_info: EntityPresentationInfo = Field(alias="entityPresentationInfo")

    @property
    def is_dominant(self) -> bool:
        return self.entity_presentation_info.entity_scenario == DOMINANT_ENTITY


class EntityList(_Envelope):
    value: List[Entity] = Field(default_factory=list)


class EntityEnvelope(_Envelope):
    entities: Optional[EntityList] = None

    def dominant_entity(self) -> Optional[Entity]:
        """First returned entity when upstream marks it dominant."""
        if self.entities is None or not self.entities.value:
            return None
        entity = self.entities.value[0]
        return entity if entity.is_dominant else None


def _decode(payload: Any, envelope_cls, service: str):
    if not isinstance(payload, dict):
        raise UpstreamResponseError(
            service,
            "Response body is not a JSON object",
            details={"body_type": type(payload).__name__},
        )

    try:
        if payload.get("_type") == ERROR_RESPONSE_TYPE:
            return ErrorEnvelope.model_validate(payload)
        return envelope_cls.model_validate(payload)
    except PydanticValidationError as exc:
        raise UpstreamResponseError(
            service,
            "Response does not match the expected envelope",
            details={"errors": exc.errors(include_url=False, include_context=False, include_input=False)},
        ) from exc


def decode_suggestion_payload(payload: Any) -> Union[ErrorEnvelope, SuggestionEnvelope]:
    """Classify a suggestions API payload."""
    return _decode(payload, SuggestionEnvelope, "suggestions_api")


def decode_entity_payload(payload: Any) -> Union[ErrorEnvelope, EntityEnvelope]:
    """Classify an entity search API payload."""
    return _decode(payload, EntityEnvelope, "entity_api")
