from datetime import datetime
from typing import Optional
from sqlalchemy import Engine, delete, insert, literal, select, update
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from shoppingcart.db import stored_carts_table
from shoppingcart.models.stored_cart import StoredCart
from shoppingcart.repositories.base import BaseRepository
from shoppingcart.utils.date_utils import DateUtils
import logging

logger = logging.getLogger(__name__)

_UPSERT_DIALECTS = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}


class StoredCartRepository(BaseRepository[StoredCart]):
    """
    Keyed access to stored carts: upsert, exists, find, delete on
    (identifier, instance).

    There is no locking around these calls. Two requests storing or
    restoring the same (identifier, instance) at once can race; the last
    write wins.
    """

    def __init__(self, engine: Engine, table_name: str = "shopping_cart"):
        super().__init__(engine)
        self._table_name = table_name
        self.table = stored_carts_table(table_name)

    @property
    def table_name(self) -> str:
        return self._table_name

    def _key(self, identifier: str, instance: str):
        return (self.table.c.identifier == identifier) & (self.table.c.instance == instance)

    def exists(self, identifier: str, instance: str) -> bool:
        query = select(literal(1)).select_from(self.table).where(self._key(identifier, instance)).limit(1)
        return self.execute_scalar(query) is not None

    def find(self, identifier: str, instance: str) -> Optional[StoredCart]:
        query = select(self.table).where(self._key(identifier, instance))
        row = self.execute_single_query(query)
        return StoredCart.from_row(row) if row else None

    def upsert(
        self,
        identifier: str,
        instance: str,
        content: str,
        created_at: Optional[datetime] = None
    ) -> None:
        """
        Insert or replace the stored cart for (identifier, instance)

        On replace, content and updated_at change; created_at is kept.
        """
        now = DateUtils.now_utc()
        values = {
            "identifier": identifier,
            "instance": instance,
            "content": content,
            "created_at": created_at or now,
            "updated_at": now,
        }

        dialect_insert = _UPSERT_DIALECTS.get(self.engine.dialect.name)
        if dialect_insert is not None:
            statement = dialect_insert(self.table).values(**values)
            statement = statement.on_conflict_do_update(
                index_elements=[self.table.c.identifier, self.table.c.instance],
                set_={
                    "content": statement.excluded.content,
                    "updated_at": statement.excluded.updated_at,
                },
            )
            self.execute_command(statement)
        elif self.exists(identifier, instance):
            self.execute_command(
                update(self.table)
                .where(self._key(identifier, instance))
                .values(content=content, updated_at=now)
            )
        else:
            self.execute_command(insert(self.table).values(**values))

        logger.info(f"Stored cart {identifier}/{instance} in {self.table_name}")

    def delete(self, identifier: str, instance: str) -> int:
        """Delete the stored cart; returns the number of removed rows"""
        affected_rows = self.execute_command(delete(self.table).where(self._key(identifier, instance)))
        if affected_rows:
            logger.info(f"Deleted stored cart {identifier}/{instance}")
        return affected_rows
