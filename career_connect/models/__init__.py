"""
Models module - SQLAlchemy tables for the SQL store.

- User: participant identity (id, name, role) plus auth fields
- Conversation: one per unordered participant pair
- Message: append-only, ordered by (created_at, id)
- InterviewRequest: job giver -> student, pending/accepted/rejected
"""
from career_connect.models.tables import (
    Conversation,
    InterviewRequest,
    Message,
    User,
    pair_key,
    utcnow,
)

__all__ = ["Conversation", "InterviewRequest", "Message", "User", "pair_key", "utcnow"]
