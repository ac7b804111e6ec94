"""
Association accessors.

Each association gets a fixed set of operations for its kind. At declaration
time every operation is wrapped in an ``Accessor`` and placed on the source
model class under a name built from the alias fragments (``getAssignments``,
``addTask``). The accessor binds to a record when it is looked up on it, so
the context used by an operation is always the one the record was built
with: ``association.target.contextify(record.ctx)``.
"""

from functools import partial
from typing import Any, Callable, Iterable, Optional, TYPE_CHECKING

from bound import same_context
from descriptor import Association, AssociationKind
from errors import ContextBindingMismatchError

if TYPE_CHECKING:
    from bound import BoundModel
    from model import Model

class Accessor:
    """
    Descriptor placed on a model class for one synthesized association method.
    """

    __slots__ = ("name", "association", "operation", "alternate")

    def __init__(self, name: str, association: Association, operation: Callable, alternate: bool = False):
        self.name = name
        self.association = association
        self.operation = operation
        self.alternate = alternate

    def __get__(self, record: Optional["Model"], owner: Optional[type] = None):
        if record is None:
            return self
        return partial(self.operation, self.association, record)

    def __repr__(self) -> str:
        return f"<Accessor {self.name} of {self.association!r}>"

########################################################################
#***************************** Helpers ********************************#
########################################################################

def _as_list(value: Any) -> list:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return [value]

def _key_values(instances: Iterable, key: str) -> list:
    """
    Key values of records or raw key values, without duplicates.
    """

    values = []
    for instance in instances:
        value = instance.get(key) if hasattr(instance, "_values") else instance
        if value not in values:
            values.append(value)
    return values

def _check_context(record: "Model", instances: Iterable):
    for instance in instances:
        ctx = getattr(instance, "ctx", None)
        if ctx is not None and not same_context(ctx, record.ctx):
            raise ContextBindingMismatchError(record.ctx, ctx)

def _target(association: Association, record: "Model") -> "BoundModel":
    return association.target.contextify(record.ctx)

def _junction(association: Association, record: "Model") -> "BoundModel":
    return association.through.contextify(record.ctx)

def _apply(instances: Iterable, name: str, value: Any):
    for instance in instances:
        if hasattr(instance, "_values"):
            instance._apply({name: value})

########################################################################
#***************************** Has Many *******************************#
########################################################################

async def has_many_get(association, record, where=None, include=None, logging=None):
    criteria = {**(where or {}), association.foreign_key: record.get(association.source_key)}
    return await _target(association, record).find_all(
        where=criteria,
        include=include,
        logging=logging
    )

async def has_many_count(association, record, where=None, logging=None):
    criteria = {**(where or {}), association.foreign_key: record.get(association.source_key)}
    return await _target(association, record).count(where=criteria, logging=logging)

async def has_many_has(association, record, instances, logging=None):
    instances = _as_list(instances)
    _check_context(record, instances)
    keys = _key_values(instances, association.target_key)
    if not keys:
        return True
    found = await has_many_count(
        association,
        record,
        where={association.target_key: keys},
        logging=logging
    )
    return found == len(keys)

async def has_many_add(association, record, instances, logging=None):
    instances = _as_list(instances)
    _check_context(record, instances)
    keys = _key_values(instances, association.target_key)
    owner = record.get(association.source_key)
    if keys:
        await _target(association, record).update(
            {association.foreign_key: owner},
            where={association.target_key: keys},
            logging=logging
        )
        _apply(instances, association.foreign_key, owner)
    return record

async def has_many_remove(association, record, instances, logging=None):
    instances = _as_list(instances)
    _check_context(record, instances)
    keys = _key_values(instances, association.target_key)
    owner = record.get(association.source_key)
    if keys:
        await _target(association, record).update(
            {association.foreign_key: None},
            where={association.target_key: keys, association.foreign_key: owner},
            logging=logging
        )
        _apply(instances, association.foreign_key, None)
    return record

async def has_many_set(association, record, instances, logging=None):
    instances = _as_list(instances)
    _check_context(record, instances)
    keys = _key_values(instances, association.target_key)
    owner = record.get(association.source_key)
    target = _target(association, record)

    current = await target.model.executor.select(
        {association.foreign_key: owner},
        logging=logging
    )
    obsolete = [
        row[association.target_key] for row in current \
        if row[association.target_key] not in keys
    ]
    if obsolete:
        await target.update(
            {association.foreign_key: None},
            where={association.target_key: obsolete},
            logging=logging
        )
    if keys:
        await target.update(
            {association.foreign_key: owner},
            where={association.target_key: keys},
            logging=logging
        )
    _apply(instances, association.foreign_key, owner)
    return record

async def has_many_create(association, record, values=None, logging=None, **attributes):
    values = {**(values or {}), **attributes}
    values[association.foreign_key] = record.get(association.source_key)
    return await _target(association, record).create(values, logging=logging)

########################################################################
#**************************** Belongs To ******************************#
########################################################################

async def belongs_to_get(association, record, include=None, logging=None):
    value = record.get(association.foreign_key)
    if value is None:
        return None
    return await _target(association, record).find(
        where={association.target_key: value},
        include=include,
        logging=logging
    )

async def belongs_to_set(association, record, instance, save=True, logging=None):
    _check_context(record, _as_list(instance))
    keys = _key_values(_as_list(instance), association.target_key)
    record.set(association.foreign_key, keys[0] if keys else None)
    if save:
        await record.save(fields=[association.foreign_key], logging=logging)
    return record

async def belongs_to_create(association, record, values=None, logging=None, **attributes):
    created = await _target(association, record).create(
        {**(values or {}), **attributes},
        logging=logging
    )
    await belongs_to_set(association, record, created, logging=logging)
    return created

########################################################################
#************************** Belongs To Many ***************************#
########################################################################

async def _linked_keys(association, record, other_keys=None, logging=None) -> list:
    criteria = {association.foreign_key: record.get(association.source_key)}
    if other_keys is not None:
        criteria[association.other_key] = other_keys
    rows = await association.through.executor.select(criteria, logging=logging)
    return [row[association.other_key] for row in rows]

async def belongs_to_many_get(association, record, where=None, include=None, logging=None):
    keys = await _linked_keys(association, record, logging=logging)
    if not keys:
        return []
    return await _target(association, record).find_all(
        where={**(where or {}), association.target_key: keys},
        include=include,
        logging=logging
    )

async def belongs_to_many_count(association, record, where=None, logging=None):
    keys = await _linked_keys(association, record, logging=logging)
    if not keys:
        return 0
    return await _target(association, record).count(
        where={**(where or {}), association.target_key: keys},
        logging=logging
    )

async def belongs_to_many_has(association, record, instances, logging=None):
    instances = _as_list(instances)
    _check_context(record, instances)
    keys = _key_values(instances, association.target_key)
    if not keys:
        return True
    linked = await _linked_keys(association, record, other_keys=keys, logging=logging)
    return len(set(linked)) == len(keys)

async def _link(association, record, keys, logging=None):
    junction = _junction(association, record)
    owner = record.get(association.source_key)
    for key in keys:
        await junction.create(
            {association.foreign_key: owner, association.other_key: key},
            logging=logging
        )

async def belongs_to_many_add(association, record, instances, logging=None):
    instances = _as_list(instances)
    _check_context(record, instances)
    keys = _key_values(instances, association.target_key)
    if keys:
        existing = await _linked_keys(association, record, other_keys=keys, logging=logging)
        await _link(association, record, [key for key in keys if key not in existing], logging)
    return record

async def belongs_to_many_remove(association, record, instances, logging=None):
    instances = _as_list(instances)
    _check_context(record, instances)
    keys = _key_values(instances, association.target_key)
    if keys:
        await _junction(association, record).destroy(
            where={
                association.foreign_key: record.get(association.source_key),
                association.other_key: keys
            },
            logging=logging
        )
    return record

async def belongs_to_many_set(association, record, instances, logging=None):
    instances = _as_list(instances)
    _check_context(record, instances)
    keys = _key_values(instances, association.target_key)
    current = await _linked_keys(association, record, logging=logging)

    obsolete = [key for key in current if key not in keys]
    if obsolete:
        await _junction(association, record).destroy(
            where={
                association.foreign_key: record.get(association.source_key),
                association.other_key: obsolete
            },
            logging=logging
        )
    await _link(association, record, [key for key in keys if key not in current], logging)
    return record

async def belongs_to_many_create(association, record, values=None, logging=None, **attributes):
    created = await _target(association, record).create(
        {**(values or {}), **attributes},
        logging=logging
    )
    await belongs_to_many_add(association, record, created, logging=logging)
    return created

########################################################################
#**************************** Synthesis *******************************#
########################################################################

# (prefix, uses plural fragment, operation) per association kind.
OPERATIONS: dict[AssociationKind, tuple[tuple[str, bool, Callable], ...]] = {
    AssociationKind.HAS_MANY: (
        ("get", True, has_many_get),
        ("set", True, has_many_set),
        ("add", False, has_many_add),
        ("add", True, has_many_add),
        ("remove", False, has_many_remove),
        ("remove", True, has_many_remove),
        ("has", False, has_many_has),
        ("has", True, has_many_has),
        ("count", True, has_many_count),
        ("create", False, has_many_create)
    ),
    AssociationKind.BELONGS_TO: (
        ("get", False, belongs_to_get),
        ("set", False, belongs_to_set),
        ("create", False, belongs_to_create)
    ),
    AssociationKind.BELONGS_TO_MANY: (
        ("get", True, belongs_to_many_get),
        ("set", True, belongs_to_many_set),
        ("add", False, belongs_to_many_add),
        ("add", True, belongs_to_many_add),
        ("remove", False, belongs_to_many_remove),
        ("remove", True, belongs_to_many_remove),
        ("has", False, belongs_to_many_has),
        ("has", True, belongs_to_many_has),
        ("count", True, belongs_to_many_count),
        ("create", False, belongs_to_many_create)
    )
}

def accessor_names(association: Association) -> dict[str, tuple[Callable, bool]]:
    """
    Accessor names for an association mapped to their operation and whether the name
    is an alternate spelling.
    """

    names: dict[str, tuple[Callable, bool]] = {}
    for prefix, plural, operation in OPERATIONS[association.kind]:
        for index, fragment in enumerate(association.names.method_fragments(plural)):
            names.setdefault(f"{prefix}{fragment}", (operation, index > 0))
    return names

def is_name_free(model: type, name: str) -> bool:
    """
    True if ``name`` is unused on ``model`` or only held by an alternate accessor spelling.
    """

    if not hasattr(model, name):
        return True
    existing = getattr(model, name)
    return isinstance(existing, Accessor) and existing.alternate

def attach_accessors(association: Association):
    """
    Place the association's accessors on its source model class. Alternate spellings
    never replace a name that is already taken.
    """

    source = association.source
    for name, (operation, alternate) in accessor_names(association).items():
        if alternate and hasattr(source, name):
            continue
        setattr(source, name, Accessor(name, association, operation, alternate))
