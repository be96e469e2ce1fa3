"""
Schemas module - Request/Response schemas for API endpoints.

Difference from models:
- Models: SQLAlchemy tables (what the store holds)
- Schemas: API contract and read-model value types (what clients see)
"""
