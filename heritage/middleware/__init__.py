"""
Heritage Numérique Backend — Middleware Package
================================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route

    1. Rate Limit rejects abusive clients before any other work
    2. Request ID sets the correlation id read by logs and error envelopes
    3. Logging records method, path, status and duration with that id
    4. GZip compresses large JSON listings
    5. CORS answers browser preflights

    Responses travel the chain in reverse. A request refused by the rate
    limiter never reaches RequestID, so its 429 carries no X-Request-ID.
"""
