"""
Role Profile Service - role-specific profile documents in MongoDB.

Collection:
  role_profiles - one document per participant:
    {user_id, role, fields: {...}, updated_at}

The conversation/request core only reads from here (job giver company name);
browse() joins participant names to the fields for the profile directory.
Field validation is owned by the profile editors, not this service.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional
from pymongo import ReturnDocument
from pymongo.collection import Collection
from sqlalchemy import select

from career_connect.db.database import get_db_session
from career_connect.db.mongodb import get_collection, COLLECTIONS
from career_connect.models import User
from career_connect.schemas.schemas import Participant, ProfileResponse, UserRole


# ============================================================
# HELPER: Convert ObjectId to string for JSON serialization
# ============================================================

def serialize_doc(doc: dict) -> dict:
    """Convert MongoDB document to JSON-serializable dict."""
    if doc is None:
        return None
    if "_id" in doc:
        doc["_id"] = str(doc["_id"])
    return doc


class RoleProfileService:
    """
    Handles role-specific profile storage.
    Keys are SQL participant ids.
    """

    def __init__(self, collection: Collection = None):
        self.collection: Collection = collection if collection is not None else get_collection(COLLECTIONS["role_profiles"])

    def upsert(self, user_id: int, role: str, fields: Dict[str, Any]) -> dict:
        """
        Insert or replace the profile fields of a participant.

        Args:
            user_id: SQL participant id
            role: participant role (stored for role-scoped queries)
            fields: role-specific fields, stored as given

        Returns:
            The stored document
        """
        doc = self.collection.find_one_and_update(
            {"user_id": user_id},
            {"$set": {"role": role, "fields": fields, "updated_at": datetime.now(timezone.utc)}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return serialize_doc(doc)

    def get(self, user_id: int) -> Optional[dict]:
        """Fetch a participant's profile document."""
        return serialize_doc(self.collection.find_one({"user_id": user_id}))

    def get_fields(self, user_id: int) -> Dict[str, Any]:
        doc = self.get(user_id)
        return doc.get("fields", {}) if doc else {}

    def company_names(self, user_ids: Iterable[int]) -> Dict[int, str]:
        """Map job giver ids to their company name (missing ids omitted)."""
        ids = list(set(user_ids))
        if not ids:
            return {}
        cursor = self.collection.find(
            {"user_id": {"$in": ids}},
            {"user_id": 1, "fields.company_name": 1},
        )
        names = {}
        for doc in cursor:
            name = doc.get("fields", {}).get("company_name")
            if name:
                names[doc["user_id"]] = name
        return names

    def fields_by_user(self, user_ids: Iterable[int]) -> Dict[int, Dict[str, Any]]:
        """Map participant ids to their profile fields (missing ids omitted)."""
        ids = list(set(user_ids))
        if not ids:
            return {}
        cursor = self.collection.find({"user_id": {"$in": ids}}, {"user_id": 1, "fields": 1})
        return {doc["user_id"]: doc.get("fields", {}) for doc in cursor}

    def browse(self, role: UserRole) -> List[ProfileResponse]:
        """
        Every active participant of a role with their profile fields, by name.

        Participants who never saved a profile are listed with empty fields.
        """
        with get_db_session() as db:
            users = db.execute(
                select(User)
                .where(User.role == role.value, User.is_active.is_(True))
                .order_by(User.full_name, User.id)
            ).scalars().all()
            participants = [Participant.model_validate(u) for u in users]

        fields = self.fields_by_user(p.id for p in participants)
        return [ProfileResponse(participant=p, fields=fields.get(p.id, {})) for p in participants]


def get_profile_service() -> RoleProfileService:
    return RoleProfileService()
