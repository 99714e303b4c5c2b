"""
Suggestion Service package for the Search Suggestion Proxy.

The service proxies the upstream suggestion API and optionally swaps
suggestions for cached entity enrichments:
- Suggestions: fetched synchronously per request
- Enrichment: looked up in the background on cache misses
- Cache: in-process, flushed daily when it grows past a size limit

Structure:
- app.main: FastAPI app, routes, and service wiring.
- app.adapters: HTTP client and envelope decoding for the upstream APIs.
- app.caching: Suggestion cache and its maintenance job.
- app.domain: Suggestion models, enrichment merger, background tasks.
"""
