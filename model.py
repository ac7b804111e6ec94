from datetime import datetime
from typing import Any, Iterable, Optional, Union

import association
from bound import BoundModel, contextify
from descriptor import Association
from meta import Meta
from naming import Alias

class Model(metaclass=Meta):
    """
    Model for defining table definitions.

    A subclass is the canonical definition of one table; its instances are
    records. Records carry the context of the view that produced them in the
    read-only ``ctx`` property (None when produced by the canonical model).
    """

    schema: str = None
    timestamps: bool = True
    freeze_table_name: bool = False
    underscored: bool = False

    ########################################################################
    #************************ Definition Methods **************************#
    ########################################################################

    @classmethod
    def define(cls, name: str, attributes: Optional[dict] = None, **options) -> type["Model"]:
        """
        Define a model without a class statement.

        Parameters:
            name (str): Model name.
            attributes (dict): Optional. Column name to Column.
            options: Class level options - table_name, schema, timestamps,
                freeze_table_name, underscored, singular_name, plural_name.
        """

        namespace = dict(attributes or {})
        namespace.update(options)
        return type(cls)(name, (cls,), namespace)

    @classmethod
    def has_many(
        cls,
        target: type["Model"],
        alias: Optional[Alias] = None,
        foreign_key: Optional[str] = None
    ) -> Association:
        return association.has_many(cls, target, alias=alias, foreign_key=foreign_key)

    @classmethod
    def belongs_to(
        cls,
        target: type["Model"],
        alias: Optional[Alias] = None,
        foreign_key: Optional[str] = None
    ) -> Association:
        return association.belongs_to(cls, target, alias=alias, foreign_key=foreign_key)

    @classmethod
    def belongs_to_many(
        cls,
        target: type["Model"],
        through: Union[str, type["Model"]],
        alias: Optional[Alias] = None,
        foreign_key: Optional[str] = None,
        other_key: Optional[str] = None,
        timestamps: bool = True
    ) -> Association:
        return association.belongs_to_many(
            cls,
            target,
            through,
            alias=alias,
            foreign_key=foreign_key,
            other_key=other_key,
            timestamps=timestamps
        )

    @classmethod
    def contextify(cls, ctx: Any) -> BoundModel:
        """
        View of this model whose records are bound to ``ctx``.
        """

        return contextify(cls, ctx)

    ########################################################################
    #*************************** Query Methods ****************************#
    ########################################################################

    @classmethod
    def build(cls, values: Optional[dict] = None, **attributes) -> "Model":
        return contextify(cls, None).build(values, **attributes)

    @classmethod
    async def create(cls, values: Optional[dict] = None, logging=None, **attributes) -> "Model":
        return await contextify(cls, None).create(values, logging=logging, **attributes)

    @classmethod
    async def find_all(
        cls,
        where: Optional[dict] = None,
        include: Optional[Iterable] = None,
        limit: Optional[int] = None,
        logging=None
    ) -> list["Model"]:
        return await contextify(cls, None).find_all(
            where=where,
            include=include,
            limit=limit,
            logging=logging
        )

    @classmethod
    async def find(
        cls,
        where: Optional[dict] = None,
        include: Optional[Iterable] = None,
        logging=None
    ) -> Optional["Model"]:
        return await contextify(cls, None).find(where=where, include=include, logging=logging)

    @classmethod
    async def count(cls, where: Optional[dict] = None, logging=None) -> int:
        return await contextify(cls, None).count(where=where, logging=logging)

    ########################################################################
    #**************************** DDL Methods *****************************#
    ########################################################################

    @classmethod
    async def sync(cls, force: bool = False, logging=None) -> type["Model"]:
        """
        Creates this model's table.
        """

        await cls.executor.create_table(force=force, logging=logging)
        return cls

    @classmethod
    async def sync_all(cls, *models: type["Model"], force: bool = False, logging=None):
        """
        Creates tables for the given models and their junction models. Without models,
        creates tables for every defined model.
        """

        if not models:
            models = tuple(type(cls).defined_models())

        synced: list = []
        for model in models:
            for candidate in (model, *model.junctions.values()):
                if candidate not in synced:
                    synced.append(candidate)
                    await candidate.sync(force=force, logging=logging)

    ########################################################################
    #************************** Record Methods ****************************#
    ########################################################################

    def __init__(
        self,
        values: Optional[dict] = None,
        *,
        ctx: Any = None,
        bound: Optional[BoundModel] = None,
        is_new_record: bool = True
    ):
        """
        Instantiates a record. Use build/create on a model or bound model instead.

        Parameters:
            values (dict): Optional. Column name to value.
            ctx (Any): Optional. Context the record is bound to. Set once, never reassigned.
            bound (BoundModel): Optional. View that produced the record.
            is_new_record (bool): Optional. Default True. False for rows read from the database.
        """

        object.__setattr__(self, "_ctx", ctx)
        object.__setattr__(self, "_bound", bound)
        object.__setattr__(self, "_values", dict(values or {}))
        object.__setattr__(self, "_included", {})
        object.__setattr__(self, "_changed", set(self._values) if is_new_record else set())
        object.__setattr__(self, "_is_new_record", is_new_record)

    @property
    def ctx(self) -> Any:
        return self._ctx

    @property
    def bound_model(self) -> Union[BoundModel, type["Model"]]:
        """
        View that produced this record, or the canonical model for unbound records.
        """

        if self._bound is None or self._ctx is None:
            return type(self)
        return self._bound

    @property
    def is_new_record(self) -> bool:
        return self._is_new_record

    def __getattr__(self, name: str) -> Any:
        values = self.__dict__.get("_values", {})
        if name in values:
            return values[name]
        included = self.__dict__.get("_included", {})
        if name in included:
            return included[name]
        if name in type(self)._attributes:
            return None
        raise AttributeError(f"'{type(self).model_name}' record has no attribute '{name}'")

    def __setattr__(self, name: str, value: Any):
        if name in type(self)._attributes:
            self.set(name, value)
        else:
            object.__setattr__(self, name, value)

    def get(self, name: str) -> Any:
        """
        Value of a column or an included association.
        """

        if name in self._values:
            return self._values[name]
        return self._included.get(name)

    def set(self, name: str, value: Any):
        self._values[name] = value
        self._changed.add(name)

    def _apply(self, values: dict):
        """
        Record values already persisted by someone else.
        """

        self._values.update(values)
        self._changed.difference_update(values)

    def _include(self, alias: str, value: Any):
        self._included[alias] = value

    def primary_key_values(self) -> dict:
        return {name: self._values.get(name) for name in type(self).primary_keys}

    def to_dict(self) -> dict:
        """
        Column values plus included associations, recursively.
        """

        result = dict(self._values)
        for alias, value in self._included.items():
            if isinstance(value, list):
                result[alias] = [item.to_dict() for item in value]
            else:
                result[alias] = None if value is None else value.to_dict()
        return result

    async def save(self, fields: Optional[Iterable[str]] = None, logging=None) -> "Model":
        """
        Insert a new record, or update the changed (or given) columns of an existing one.
        """

        model = type(self)
        now = datetime.now()

        if self._is_new_record:
            if model.timestamps:
                for timestamp in model.timestamp_attributes:
                    self._values.setdefault(timestamp, now)
            row = await model.executor.insert(self._values, logging=logging)
            self._values.update(row)
            object.__setattr__(self, "_is_new_record", False)
        else:
            names = list(fields) if fields is not None else \
                [name for name in self._values if name in self._changed]
            if not names:
                return self
            values = {name: self._values.get(name) for name in names}
            if model.timestamps:
                updated_at = model.timestamp_attributes[1]
                values[updated_at] = self._values[updated_at] = now
            await model.executor.update(values, self.primary_key_values(), logging=logging)

        self._changed.clear()
        return self

    def __repr__(self) -> str:
        keys = " ".join([f"{name}={value!r}" for name, value in self.primary_key_values().items()])
        return f"<{type(self).model_name} {keys} ctx={self._ctx!r}>"
