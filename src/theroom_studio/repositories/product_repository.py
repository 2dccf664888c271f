"""Membership products (``products`` relation)."""

from __future__ import annotations

from typing import List

from ..client import DataServiceClient
from ..models import Product
from .base_repository import BaseRepository


class ProductRepository(BaseRepository[Product]):
    table = "products"

    def __init__(self, client: DataServiceClient) -> None:
        super().__init__(client, Product)

    async def list_catalog(self) -> List[Product]:
        result = (
            await self.query()
            .select("*")
            .order("type", ascending=True)
            .order("price", ascending=True)
            .execute()
        )
        return self.to_models(result.data)
