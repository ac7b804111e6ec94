from typing import Any, Optional, TYPE_CHECKING

from defaults import DefaultValue
from mappers import DATA_TYPE_MAPPER

if TYPE_CHECKING:
    from dialects import Dialect

class Column:
    """
    Column class for table/model column definitions.
    """

    def __init__(
        self,
        data_type: type,
        length: Optional[int] = None,
        primary_key: bool = False,
        auto_increment: bool = False,
        allow_null: bool = True,
        db_default: Optional[Any] = None
    ):
        """
        Instantiates a column.

        Parameters:
            data_type (type): Python type of the column's values.
            length (int): Optional. VARCHAR length for str columns.
            primary_key (bool): Optional. Default False. Part of the table's primary key.
            auto_increment (bool): Optional. Default False. Value is generated by the database
                on insert. Only meaningful for int primary keys.
            allow_null (bool): Optional. Default True. Ignored for primary keys.
            db_default (Any): Optional. Raw SQL appended to the column definition,
                e.g. "DEFAULT 0".
        """

        self._data_type = data_type
        self._length = length
        self._db_default = db_default
        self._primary_key = primary_key
        self._auto_increment = auto_increment
        self._allow_null = allow_null

    def copy(
        self,
        primary_key: Optional[bool] = None,
        allow_null: Optional[bool] = None
    ) -> "Column":
        """
        Create a new column of the same type. Foreign keys copy the column they reference,
        without its auto increment.
        """

        return Column(
            data_type=self._data_type,
            length=self._length,
            primary_key=self._primary_key if primary_key is None else primary_key,
            auto_increment=False,
            allow_null=self._allow_null if allow_null is None else allow_null,
            db_default=self._db_default
        )

    def db_data_type(self, dialect: "Dialect") -> str:
        """
        Get string value of database type for a given dialect.
        """

        if self._auto_increment:
            return dialect.serial_type

        db_data_type = dialect.type_name(DATA_TYPE_MAPPER.get(self._data_type))
        if self._data_type == str:
            length = \
                self.length if self.length is not None and self.length > 0 \
                else DefaultValue.VARCHAR_LENGTH.value
            db_data_type = f"{db_data_type}({length})"
        if not self._allow_null and not self._primary_key:
            db_data_type = f"{db_data_type} NOT NULL"
        if self._db_default:
            db_data_type = f"{db_data_type} {self._db_default}"
        return db_data_type

    @property
    def data_type(self) -> type:
        """
        Python type of this column's values.
        """

        return self._data_type

    @property
    def primary_key(self) -> bool:
        """
        True if this column is a primary key of its associated table/model.
        """

        return self._primary_key

    @property
    def auto_increment(self) -> bool:
        """
        True if the database generates this column's value.
        """

        return self._auto_increment

    @property
    def allow_null(self) -> bool:
        return self._allow_null

    @property
    def length(self) -> Optional[int]:
        """
        VARCHAR length.
        """

        return self._length

    def __repr__(self) -> str:
        flags = []
        if self._primary_key:
            flags.append("primary_key")
        if self._auto_increment:
            flags.append("auto_increment")
        return f"<Column {self._data_type.__name__}{' ' if flags else ''}{' '.join(flags)}>"
