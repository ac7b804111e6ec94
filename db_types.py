"""
SQL type names used in table definitions.
"""

BOOLEAN = "BOOLEAN"
DECIMAL = "DECIMAL"
INTEGER = "INTEGER"
JSON = "JSON"
TEXT = "TEXT"
TIMESTAMP = "TIMESTAMP"
UUID = "UUID"
VARCHAR = "VARCHAR"
