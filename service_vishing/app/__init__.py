"""
Vishing Service package for the security awareness training platform.

The service backs the voice-phishing simulation UI:
- Prompt retrieval: scene content from the KV store plus a voice session URL
- Conversation summary: bearer-token check, then a model-generated debrief

Structure:
- app.main: FastAPI app, routes, and wiring.
- app.auth: Token cache and the upstream authorization check.
- app.adapters: HTTP clients for external services.
- app.domain: Request/response schemas and route-independent logic.
"""
