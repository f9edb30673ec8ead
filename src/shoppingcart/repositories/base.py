from abc import ABC, abstractmethod
from typing import TypeVar, Generic, Optional, Any, Dict, Union
from contextlib import contextmanager
from sqlalchemy import Engine, text
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
from sqlalchemy.sql import Executable
from shoppingcart.core.exceptions import DatabaseError
import logging

T = TypeVar('T')

Statement = Union[str, Executable]

logger = logging.getLogger(__name__)


class BaseRepository(ABC, Generic[T]):
    """
    Abstract base repository providing common database operations.
    Implements Repository Pattern for clean separation of data access logic.
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    @contextmanager
    def get_db_connection(self):
        """Database connection context manager with error handling"""
        try:
            with self.engine.connect() as conn:
                yield conn
        except SQLAlchemyError as e:
            logger.error(f"Database connection error: {str(e)}")
            raise DatabaseError(f"Database connection failed: {str(e)}")

    @staticmethod
    def _statement(statement: Statement) -> Executable:
        return text(statement) if isinstance(statement, str) else statement

    def execute_single_query(
        self,
        query: Statement,
        params: Optional[Dict[str, Any]] = None
    ) -> Optional[Dict[str, Any]]:
        """
        Execute query expecting single result

        Returns:
            Single row dictionary or None if not found
        """
        try:
            with self.get_db_connection() as conn:
                result = conn.execute(self._statement(query), params or {}).first()
                return dict(result._mapping) if result else None
        except SQLAlchemyError as e:
            logger.error(f"Single query execution failed: {query}, Error: {str(e)}")
            raise DatabaseError(f"Single query execution failed: {str(e)}", "SELECT")

    def execute_command(
        self,
        command: Statement,
        params: Optional[Dict[str, Any]] = None
    ) -> int:
        """
        Execute INSERT/UPDATE/DELETE command

        Returns:
            Number of affected rows
        """
        try:
            with self.get_db_connection() as conn:
                result = conn.execute(self._statement(command), params or {})
                conn.commit()
                return result.rowcount
        except IntegrityError as e:
            logger.error(f"Integrity constraint violation: {command}, Error: {str(e)}")
            raise DatabaseError(f"Data integrity violation: {str(e)}", "WRITE")
        except SQLAlchemyError as e:
            logger.error(f"Command execution failed: {command}, Error: {str(e)}")
            raise DatabaseError(f"Command execution failed: {str(e)}", "WRITE")

    def execute_scalar(
        self,
        query: Statement,
        params: Optional[Dict[str, Any]] = None
    ) -> Any:
        """
        Execute query returning single scalar value (COUNT, EXISTS, etc.)
        """
        try:
            with self.get_db_connection() as conn:
                return conn.execute(self._statement(query), params or {}).scalar()
        except SQLAlchemyError as e:
            logger.error(f"Scalar query execution failed: {query}, Error: {str(e)}")
            raise DatabaseError(f"Scalar query execution failed: {str(e)}", "SELECT")

    @property
    @abstractmethod
    def table_name(self) -> str:
        """Table name for the entity"""
        pass
