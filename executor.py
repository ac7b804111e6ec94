import asyncio
import logging
import threading
from collections import defaultdict
from typing import (
    Any,
    Callable,
    NamedTuple,
    Optional,
    TYPE_CHECKING
)

import psycopg2
from psycopg2._psycopg import connection

from config import DatabaseSettings
from descriptor import AssociationKind
from dialects import Dialect, POSTGRES
from errors import ConfigurationError, ConnectionNotEstablishedError

if TYPE_CHECKING:
    from eager import IncludeSpec
    from model import Model

logger = logging.getLogger(__name__)

class QueryResult(NamedTuple):
    rows: list[dict]
    rowcount: int
    lastrowid: Optional[int]

class Executor:
    """
    Executes all query operations for a model.
    """

    ########################################################################
    #********************** Class Connection Methods **********************#
    ########################################################################

    _connection: Any = None
    _dialect: Dialect = POSTGRES
    _lock = threading.Lock()

    @classmethod
    def establish_connection(cls, creds: Optional[dict] = None, autocommit: bool = True):
        """
        Establish a PostgreSQL connection using given credentials.

        Parameters:
            creds (dict): Optional. Credentials for given database. Defaults to
                DatabaseSettings loaded from PT_ORM_* environment variables.
                Expected keys - "host", "database", "user", "password", "port".

            autocommit (bool): Optional. Default True. Determines if connection will autocommit.
        """

        if cls._connection is None:
            creds = creds or DatabaseSettings().as_creds()
            cls._connection = cls.generate_connection(creds)
            cls._connection.autocommit = autocommit
            cls._dialect = POSTGRES
            logger.info("Connected to PostgreSQL database %s on %s", creds["database"], creds["host"])

    @classmethod
    def generate_connection(cls, creds: dict) -> connection:
        """
        Generates a new connection using given credentials.

        Parameters:
            creds (dict): Credentials for given database.
                Expected keys - "host", "database", "user", "password", "port".
        """

        try:
            parameters = {
                "host": creds["host"],
                "database": creds["database"],
                "user": creds["user"],
                "password": creds["password"],
                "port": creds["port"]
            }
        except KeyError as exc:
            raise ConfigurationError(f"Missing database credential {exc}") from exc
        return psycopg2.connect(**parameters)

    @classmethod
    def use_connection(cls, db_connection: Any, dialect: Dialect):
        """
        Use an already open DB-API connection, e.g. a sqlite3 connection.
        """

        cls._connection = db_connection
        cls._dialect = dialect
        logger.info("Using %s connection", dialect.name)

    @classmethod
    def close_connection(cls):
        if cls._connection is not None:
            cls._connection.close()
            cls._connection = None
            logger.info("Connection closed")

    ########################################################################
    #************************ Class Query Methods *************************#
    ########################################################################

    @classmethod
    def _run(
        cls,
        query: str,
        query_parameters: Optional[list] = None,
        include_results: bool = False,
        logging: Optional[Callable[[str], Any]] = None
    ) -> QueryResult:
        """
        Runs a given query with given parameters. Optionally include results as return value.

        Parameters:
            query (str): Given query to be run.
            query_parameters (list): Given query parameters to include along with the query.
            include_results (bool): Optional. Default False. If True, rows are returned as dicts.
            logging (callable): Optional. Called with the query before it runs.
        """

        if cls._connection is None:
            raise ConnectionNotEstablishedError("No connection; call Executor.establish_connection first")

        parameters = [cls._dialect.adapt(value) for value in query_parameters or []]
        logger.debug("Executing: %s; parameters=%s", query, parameters)
        if logging is not None:
            logging(query)

        with cls._lock:
            cur = cls._connection.cursor()
            try:
                cur.execute(query, parameters)
                rows = []
                if include_results:
                    columns = [description[0] for description in cur.description]
                    rows = [dict(zip(columns, row)) for row in cur.fetchall()]
                return QueryResult(rows, cur.rowcount, getattr(cur, "lastrowid", None))
            finally:
                cur.close()

    @classmethod
    async def _run_async(
        cls,
        query: str,
        query_parameters: Optional[list] = None,
        include_results: bool = False,
        logging: Optional[Callable[[str], Any]] = None
    ) -> QueryResult:
        return await asyncio.to_thread(cls._run, query, query_parameters, include_results, logging)

    ########################################################################
    #********************** Class Processing Methods **********************#
    ########################################################################

    @classmethod
    def _get_table_name(cls, model: type["Model"]) -> str:
        """
        Get quoted table name of a given model. This includes the model's schema.
        """

        table_name = cls._dialect.quote(model.table_name)
        if model.schema:
            return f"{cls._dialect.quote(model.schema)}.{table_name}"
        return table_name

    @classmethod
    def _build_where(cls, where: Optional[dict]) -> tuple[str, list]:
        """
        Build a WHERE clause of ANDed equality conditions. Sequence values become IN,
        None becomes IS NULL.
        """

        if not where:
            return "", []

        conditions = []
        parameters: list = []
        for column, value in where.items():
            name = cls._dialect.quote(column)
            if value is None:
                conditions.append(f"{name} IS NULL")
            elif isinstance(value, (list, tuple, set, frozenset)):
                values = list(value)
                if not values:
                    conditions.append("1 = 0")
                    continue
                conditions.append(f"{name} IN ({cls._dialect.placeholders(len(values))})")
                parameters.extend(values)
            else:
                conditions.append(f"{name} = {cls._dialect.placeholder}")
                parameters.append(value)
        return " WHERE " + " AND ".join(conditions), parameters

    ########################################################################
    #*********************** Instanced Init Methods ***********************#
    ########################################################################

    def __init__(self, model: type["Model"]):
        """
        Initializes an Executor instance. Responsible for handling query processing for a given model.

        Parameters:
            model (Model): Model to instantiate an Executor for.
        """

        self._model = model

    ########################################################################
    #******************** Instanced Processing Methods ********************#
    ########################################################################

    def get_table_name(self) -> str:
        """
        Get table name for this Executor instance's model. This includes the models's schema.
        """

        return Executor._get_table_name(self._model)

    def get_column_names(self) -> list[str]:
        """
        Get column names for this Executor instance's model.
        """

        return list(self._model.attributes)

    def _column_list(self, names: list[str]) -> str:
        return ", ".join([Executor._dialect.quote(name) for name in names])

    def _restore(self, row: dict) -> dict:
        """
        Convert a row read from the database back to its columns' Python types.
        """

        dialect = Executor._dialect
        attributes = self._model.attributes
        return {
            name: dialect.restore(value, attributes[name].data_type) if name in attributes else value
            for name, value in row.items()
        }

    ########################################################################
    #************************ Instanced DDL Methods ***********************#
    ########################################################################

    async def create_table(self, force: bool = False, logging=None):
        """
        Create database table for this Executor instance's model.

        Parameters:
            force (bool): Optional. Default False. Drop the table first.
        """

        if force:
            await self.drop_table(logging=logging)

        dialect = Executor._dialect
        columns = self._model.attributes

        # Get columns to add to create script.
        columns_query_part = ", ".join([
            f"{dialect.quote(name)} {column.db_data_type(dialect)}" \
            for name, column in columns.items()
        ])

        # Get primary keys to add to create script.
        primary_keys_query_part = self._column_list(self._model.primary_keys)

        # Put together full create script.
        query = f"CREATE TABLE IF NOT EXISTS {self.get_table_name()} " \
            f"({columns_query_part}, PRIMARY KEY ({primary_keys_query_part}))"

        await Executor._run_async(query, logging=logging)

    async def drop_table(self, logging=None):
        await Executor._run_async(f"DROP TABLE IF EXISTS {self.get_table_name()}", logging=logging)

    ########################################################################
    #********************** Instanced Query Methods ***********************#
    ########################################################################

    async def select(
        self,
        where: Optional[dict] = None,
        limit: Optional[int] = None,
        logging=None
    ) -> list[dict]:
        """
        Select rows of this Executor instance's model as dicts keyed by column name.
        """

        where_query_part, parameters = Executor._build_where(where)
        query = f"SELECT {self._column_list(self.get_column_names())} " \
            f"FROM {self.get_table_name()}{where_query_part} " \
            f"ORDER BY {self._column_list(self._model.primary_keys)}"
        if limit is not None:
            query += f" LIMIT {int(limit)}"

        result = await Executor._run_async(query, parameters, include_results=True, logging=logging)
        return [self._restore(row) for row in result.rows]

    async def count(self, where: Optional[dict] = None, logging=None) -> int:
        where_query_part, parameters = Executor._build_where(where)
        query = f"SELECT COUNT(*) AS count FROM {self.get_table_name()}{where_query_part}"
        result = await Executor._run_async(query, parameters, include_results=True, logging=logging)
        return int(result.rows[0]["count"])

    async def select_with_includes(
        self,
        where: Optional[dict] = None,
        includes: tuple["IncludeSpec", ...] = (),
        limit: Optional[int] = None,
        logging=None
    ) -> list[dict]:
        """
        Select rows with included associations attached under their alias. Has-many and
        belongs-to-many aliases hold lists, belongs-to aliases a row or None.
        """

        rows = await self.select(where, limit=limit, logging=logging)
        for spec in includes:
            await self._attach(rows, spec, logging)
        return rows

    async def _attach(self, rows: list[dict], spec: "IncludeSpec", logging=None):
        association = spec.association
        alias = association.alias
        target = association.target.executor

        if association.kind is AssociationKind.BELONGS_TO:
            keys = _unique(row.get(association.foreign_key) for row in rows)
            parents = await target.select_with_includes(
                {association.target_key: keys},
                spec.include,
                logging=logging
            ) if keys else []
            by_key = {parent[association.target_key]: parent for parent in parents}
            for row in rows:
                row[alias] = by_key.get(row.get(association.foreign_key))
            return

        owner_keys = _unique(row.get(association.source_key) for row in rows)

        if association.kind is AssociationKind.HAS_MANY:
            children = await target.select_with_includes(
                {association.foreign_key: owner_keys},
                spec.include,
                logging=logging
            ) if owner_keys else []
            grouped = defaultdict(list)
            for child in children:
                grouped[child[association.foreign_key]].append(child)
            for row in rows:
                row[alias] = grouped.get(row.get(association.source_key), [])
            return

        links = await association.through.executor.select(
            {association.foreign_key: owner_keys},
            logging=logging
        ) if owner_keys else []
        other_keys = _unique(link[association.other_key] for link in links)
        others = await target.select_with_includes(
            {association.target_key: other_keys},
            spec.include,
            logging=logging
        ) if other_keys else []
        by_key = {other[association.target_key]: other for other in others}
        grouped = defaultdict(list)
        for link in links:
            other = by_key.get(link[association.other_key])
            if other is not None:
                grouped[link[association.foreign_key]].append(other)
        for row in rows:
            row[alias] = grouped.get(row.get(association.source_key), [])

    async def insert(self, values: dict, logging=None) -> dict:
        """
        Insert a row and return it as stored.
        """

        dialect = Executor._dialect
        names = [name for name in values if name in self._model.attributes]
        parameters = [values[name] for name in names]

        if names:
            query = f"INSERT INTO {self.get_table_name()} ({self._column_list(names)}) " \
                f"VALUES ({dialect.placeholders(len(names))})"
        else:
            query = f"INSERT INTO {self.get_table_name()} DEFAULT VALUES"
        if dialect.supports_returning:
            query += " RETURNING *"

        result = await Executor._run_async(
            query,
            parameters,
            include_results=dialect.supports_returning,
            logging=logging
        )
        if result.rows:
            return self._restore(result.rows[0])

        row = {name: values[name] for name in names}
        for name, column in self._model.attributes.items():
            if column.auto_increment and row.get(name) is None:
                row[name] = result.lastrowid
        return row

    async def update(self, values: dict, where: Optional[dict] = None, logging=None) -> int:
        """
        Update rows matching ``where``. Returns the number of rows updated.
        """

        names = [name for name in values if name in self._model.attributes]
        if not names:
            return 0

        set_query_part = ", ".join([
            f"{Executor._dialect.quote(name)} = {Executor._dialect.placeholder}" for name in names
        ])
        where_query_part, where_parameters = Executor._build_where(where)
        query = f"UPDATE {self.get_table_name()} SET {set_query_part}{where_query_part}"

        result = await Executor._run_async(
            query,
            [values[name] for name in names] + where_parameters,
            logging=logging
        )
        return result.rowcount

    async def delete(self, where: Optional[dict] = None, logging=None) -> int:
        where_query_part, parameters = Executor._build_where(where)
        query = f"DELETE FROM {self.get_table_name()}{where_query_part}"
        result = await Executor._run_async(query, parameters, logging=logging)
        return result.rowcount

def _unique(values) -> list:
    unique = []
    for value in values:
        if value is not None and value not in unique:
            unique.append(value)
    return unique
