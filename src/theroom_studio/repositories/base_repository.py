"""
Base repository for the studio data service.

Repositories own the relation names, embedded selects and filters; services
never build queries directly. Data service errors propagate unchanged so the
service layer can react to specific kinds (for example a uniqueness violation).
"""

import logging
from typing import Any, Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel

from ..client import DataServiceClient
from ..query import TableQuery

T = TypeVar("T", bound=BaseModel)

class BaseRepository(Generic[T]):
    """Typed access to one relation of the data service."""

    table: str = ""

    def __init__(self, client: DataServiceClient, model: Type[T]) -> None:
        self.client = client
        self.model = model
        self.logger = logging.getLogger(self.__class__.__name__)

    def query(self) -> TableQuery:
        return self.client.table(self.table)

    def to_model(self, row: Optional[dict[str, Any]]) -> Optional[T]:
        if row is None:
            return None
        return self.model.model_validate(row)

    def to_models(self, rows: Optional[List[dict[str, Any]]]) -> List[T]:
        return [self.model.model_validate(row) for row in rows or []]

    async def delete(self, id: str) -> None:
        await self.query().delete().eq("id", id).execute()
        self.logger.info("%s_row_deleted id=%s", self.table, id)
