from datetime import datetime
from types import MappingProxyType
from typing import Mapping, Optional

from column import Column
from defaults import DefaultValue
from executor import Executor
from naming import default_table_name, timestamp_columns

class Meta(type):
    """
    Meta for ORM Models.

    Moves Column class attributes into the model's attribute schema, adds the
    default primary key and timestamp columns, names the table, gives each
    model its own association and junction registries, and records the model
    by name so a junction named by string can be found again.
    """

    _executor: type[Executor] = Executor
    _registry: dict[str, "Meta"] = {}

    def __new__(mcs, name, bases, namespace, **kwargs):
        columns = {
            attribute_name: namespace.pop(attribute_name) \
            for attribute_name, value in list(namespace.items()) \
            if isinstance(value, Column)
        }
        cls = super().__new__(mcs, name, bases, namespace, **kwargs)

        attributes: dict[str, Column] = {}
        for base in reversed(cls.__mro__[1:]):
            attributes.update(getattr(base, "_attributes", {}))
        attributes.update(columns)

        is_root = not any(isinstance(base, Meta) for base in bases)
        if not is_root:
            if not any(column.primary_key for column in attributes.values()):
                attributes = {
                    DefaultValue.PRIMARY_KEY.value: Column(int, primary_key=True, auto_increment=True),
                    **attributes
                }
            if cls.timestamps:
                for timestamp in timestamp_columns(cls.underscored):
                    attributes.setdefault(timestamp, Column(datetime))

        cls._attributes = attributes
        cls._associations = {}
        cls._junctions = {}
        cls.model_name = namespace.get("model_name") or name
        cls.singular_name = namespace.get("singular_name")
        cls.plural_name = namespace.get("plural_name")
        cls.table_name = namespace.get("table_name") or \
            default_table_name(cls.model_name, cls.freeze_table_name)
        if not is_root:
            mcs._registry[cls.model_name] = cls
        return cls

    @classmethod
    def lookup(mcs, model_name: str) -> Optional["Meta"]:
        """
        Most recently defined model with the given name, if any.
        """

        return mcs._registry.get(model_name)

    @classmethod
    def defined_models(mcs) -> list["Meta"]:
        return list(mcs._registry.values())

    @classmethod
    def clear_registry(mcs):
        mcs._registry.clear()

    def _get_executor(self) -> Executor:
        return self._executor(self)

    @property
    def executor(self) -> Executor:
        return self._get_executor()

    @property
    def attributes(self) -> Mapping[str, Column]:
        """
        Column name to Column, including injected foreign keys.
        """

        return MappingProxyType(self._attributes)

    @property
    def associations(self) -> Mapping:
        """
        Alias key to Association.
        """

        return MappingProxyType(self._associations)

    @property
    def junctions(self) -> Mapping:
        return MappingProxyType(self._junctions)

    @property
    def timestamp_attributes(self) -> tuple[str, str]:
        """
        Created and updated column names, snake case for underscored models.
        """

        return timestamp_columns(self.underscored)

    @property
    def primary_keys(self) -> list[str]:
        return [name for name, column in self._attributes.items() if column.primary_key]

    @property
    def primary_key(self) -> str:
        """
        First primary key column; the one associations reference.
        """

        return self.primary_keys[0]

    def __repr__(self) -> str:
        return f"<Model {self.model_name}>"
