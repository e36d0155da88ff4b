"""
University Application Platform
Browse, compare and apply to universities.

Architecture:
- MongoDB: universities, applications, users
- FastAPI: REST API under /api with JSON envelopes
- JWT: staff authentication and role checks
"""

__version__ = "1.0.0"
