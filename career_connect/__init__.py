"""
Career Connect
Students, job givers and mentors on one platform: direct conversations,
live messaging and interview requests.

Architecture:
- SQL store (PostgreSQL): participants, conversations, messages, requests
- MongoDB: role-specific profile documents
- In-process fan-out: WebSocket push of new messages and request changes
"""

__version__ = "1.0.0"
