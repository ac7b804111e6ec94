"""
SQL dialects supported by the executor.

A dialect covers only what differs between the backends this ORM talks to:
parameter placeholders, the auto-increment column type, whether ``INSERT``
can return the stored row, and how Python values are adapted on the way in.
"""

import json
from datetime import datetime
from typing import Any
from uuid import UUID

from psycopg2.extras import Json

from db_types import TEXT, UUID as DB_UUID

class Dialect:
    """
    Base dialect. Subclasses override the class attributes and ``adapt``.
    """

    name: str = ""
    placeholder: str = "%s"
    serial_type: str = "SERIAL"
    supports_returning: bool = True
    type_overrides: dict[str, str] = {}

    def placeholders(self, count: int) -> str:
        """
        Comma separated placeholders for ``count`` parameters.
        """

        return ", ".join([self.placeholder] * count)

    def quote(self, identifier: str) -> str:
        """
        Quote an identifier. Model and column names keep their casing.
        """

        return '"{}"'.format(identifier.replace('"', '""'))

    def type_name(self, db_data_type: str) -> str:
        """
        Translate a generic SQL type name for this backend.
        """

        return self.type_overrides.get(db_data_type, db_data_type)

    def adapt(self, value: Any) -> Any:
        """
        Adapt a Python value for use as a query parameter.
        """

        return value

    def restore(self, value: Any, data_type: type) -> Any:
        """
        Convert a value read from the database back to the column's Python type.
        """

        return value

    def __repr__(self) -> str:
        return f"<{type(self).__name__}>"

class PostgresDialect(Dialect):
    name = "postgres"
    placeholder = "%s"
    serial_type = "SERIAL"
    supports_returning = True

    def adapt(self, value: Any) -> Any:
        if isinstance(value, dict):
            return Json(value)
        if isinstance(value, UUID):
            return str(value)
        return value

    def restore(self, value: Any, data_type: type) -> Any:
        if data_type is UUID and isinstance(value, str):
            return UUID(value)
        return value

class SQLiteDialect(Dialect):
    name = "sqlite"
    placeholder = "?"
    serial_type = "INTEGER"
    supports_returning = False
    type_overrides = {DB_UUID: TEXT}

    def adapt(self, value: Any) -> Any:
        if isinstance(value, datetime):
            return value.isoformat(sep=" ")
        if isinstance(value, dict):
            return json.dumps(value)
        if isinstance(value, UUID):
            return str(value)
        return value

    def restore(self, value: Any, data_type: type) -> Any:
        if data_type is datetime and isinstance(value, str):
            return datetime.fromisoformat(value)
        if data_type is dict and isinstance(value, str):
            return json.loads(value)
        if data_type is UUID and isinstance(value, str):
            return UUID(value)
        if data_type is bool and isinstance(value, int):
            return bool(value)
        return value

POSTGRES = PostgresDialect()
SQLITE = SQLiteDialect()
