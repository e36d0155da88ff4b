"""
Schemas module - Request schemas for API endpoints.

Responses use the JSON envelope built in app.api.responses, so only
request bodies are modelled here.
"""
