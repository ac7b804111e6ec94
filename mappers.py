from datetime import datetime
from uuid import UUID as UUID_type

from db_types import (
    BOOLEAN,
    DECIMAL,
    INTEGER,
    JSON,
    TIMESTAMP,
    UUID as DB_UUID,
    VARCHAR
)

DATA_TYPE_MAPPER = {
    bool: BOOLEAN,
    datetime: TIMESTAMP,
    dict: JSON,
    float: DECIMAL,
    int: INTEGER,
    str: VARCHAR,
    UUID_type: DB_UUID
}
