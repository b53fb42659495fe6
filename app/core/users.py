"""User profile lookups."""

from typing import Any

from app.core.store import DataStore
from app.models.user import UserProfile

USERS_COLLECTION = "users"


class UserProfileService:
    """Reads and updates user profiles in the data store."""

    def __init__(self, store: DataStore):
        self.store = store

    async def get_user_profile(self, user_id: str) -> UserProfile | None:
        """Get a user's profile, or None if they have none."""
        data = await self.store.get(USERS_COLLECTION, user_id)
        if data is None:
            return None
        data.setdefault("uid", user_id)
        return UserProfile.model_validate(data)

    async def update_user_profile(self, user_id: str, **fields: Any) -> None:
        """Update profile fields given by their Python names."""
        updates: dict[str, Any] = {}
        for name, value in fields.items():
            field = UserProfile.model_fields.get(name)
            if field is None:
                raise ValueError(f"Unknown profile field: {name}")
            updates[field.alias or name] = value
        await self.store.update(USERS_COLLECTION, user_id, updates)

    async def save_user_profile(self, profile: UserProfile) -> None:
        await self.store.set(USERS_COLLECTION, profile.uid, profile.to_document())
