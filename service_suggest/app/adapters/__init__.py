"""
Adapters package for the Suggestion Service.

Contains the HTTP client wrapper for the upstream search APIs and the
decoders for their JSON envelopes. Adapters encapsulate:

- Base URLs and request shapes
- Envelope classification before any field access
- Error handling that maps to shared errors

Keep adapters thin and side-effect free outside of explicit calls.
"""

from .bing_client import BingClient
from .envelopes import (
    EntityEnvelope,
    ErrorEnvelope,
    SuggestionEnvelope,
    decode_entity_payload,
    decode_suggestion_payload,
)

__all__ = [
    "BingClient",
    "EntityEnvelope",
    "ErrorEnvelope",
    "SuggestionEnvelope",
    "decode_entity_payload",
    "decode_suggestion_payload",
]
