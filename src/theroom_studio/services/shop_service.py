"""Membership product catalog."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from ..models import Product
from ..repositories import ProductRepository
from ..session import SessionContext
from .base import BaseService


@dataclass(frozen=True)
class PurchaseNotice:
    title: str
    message: str


class ShopService(BaseService):
    def __init__(self, context: SessionContext, products: ProductRepository) -> None:
        super().__init__(context)
        self.products = products

    @BaseService.measure_operation("list_products")
    async def list_products(self) -> List[Product]:
        """Products grouped by type, cheapest first within each type."""
        return await self.products.list_catalog()

    async def purchase(self, product: Product) -> PurchaseNotice:
        # Checkout is not wired to a payment provider yet; nothing is written.
        self.logger.info("purchase_simulated product_id=%s", product.id)
        return PurchaseNotice(title="Purchase", message=f"Simulating purchase of {product.name}")
