from typing import Dict, Optional

from sqlalchemy import (
    Column, DateTime, Engine, MetaData, String, Table, Text, UniqueConstraint, create_engine
)
from sqlalchemy.pool import StaticPool

from shoppingcart.core.config import DatabaseConfig, config


metadata = MetaData()

_engines: Dict[str, Engine] = {}


def stored_carts_table(table_name: str = "shopping_cart") -> Table:
    """
    The stored-cart table, one definition per configured name.

    identifier + instance is unique so a store is always an upsert.
    """
    if table_name in metadata.tables:
        return metadata.tables[table_name]

    return Table(
        table_name,
        metadata,
        Column("identifier", String(255), nullable=False),
        Column("instance", String(255), nullable=False),
        Column("content", Text, nullable=False),
        Column("created_at", DateTime(timezone=True), nullable=False),
        Column("updated_at", DateTime(timezone=True), nullable=False),
        UniqueConstraint("identifier", "instance", name=f"uq_{table_name}_identifier_instance"),
    )


def create_db_engine(url: str, echo: bool = False) -> Engine:
    """Create an engine; in-memory SQLite shares one connection across threads"""
    in_memory = url == "sqlite://" or ":memory:" in url
    if url.startswith("sqlite") and in_memory:
        return create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(url, echo=echo, pool_pre_ping=True)


def get_engine(database: Optional[DatabaseConfig] = None) -> Engine:
    """Engine for the configured cart connection (cached per URL)"""
    database = database or config.cart.database
    url = database.connection_url
    if url not in _engines:
        _engines[url] = create_db_engine(url, echo=database.echo)
    return _engines[url]


def create_tables(engine: Engine, table_name: str = "shopping_cart") -> None:
    """Create the stored-cart table if it does not exist"""
    table = stored_carts_table(table_name)
    table.create(engine, checkfirst=True)
