"""User profile rows (``users`` relation)."""

from __future__ import annotations

from typing import List, Optional

from ..client import DataServiceClient
from ..models import User
from .base_repository import BaseRepository


class UserRepository(BaseRepository[User]):
    table = "users"

    def __init__(self, client: DataServiceClient) -> None:
        super().__init__(client, User)

    async def get_profile(self, user_id: str) -> User:
        """Load exactly one profile; a missing row raises ``DataServiceNotFoundError``."""
        result = await self.query().select("*").eq("id", user_id).single().execute()
        return User.model_validate(result.data)

    async def list_newest_first(self) -> List[User]:
        result = await self.query().select("*").order("created_at", ascending=False).execute()
        return self.to_models(result.data)

    async def set_credits(
        self,
        user_id: str,
        credits: int,
        *,
        expected: Optional[int] = None,
    ) -> Optional[User]:
        """
        Write ``credits_remaining`` for one user.

        When ``expected`` is given the update only applies if the stored
        balance still equals it; ``None`` is returned when no row matched.
        """
        query = self.query().update({"credits_remaining": credits}).eq("id", user_id)
        if expected is not None:
            query = query.eq("credits_remaining", expected)
        result = await query.select("*").execute()
        rows = result.data or []
        return User.model_validate(rows[0]) if rows else None

    async def set_admin(self, user_id: str, is_admin: bool) -> Optional[User]:
        result = (
            await self.query()
            .update({"is_admin": is_admin})
            .eq("id", user_id)
            .select("*")
            .execute()
        )
        rows = result.data or []
        return User.model_validate(rows[0]) if rows else None
