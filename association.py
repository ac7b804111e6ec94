"""
Association declarations.

``has_many``, ``belongs_to`` and ``belongs_to_many`` build an ``Association``
for a source model, add the foreign key columns it needs, register it under
its alias key and attach its accessors to the source class. All of this
happens once, at definition time. Every check runs before anything is
mutated, so a rejected declaration leaves the models as they were.
"""

from typing import Optional, Union

from accessors import accessor_names, attach_accessors, is_name_free
from column import Column
from descriptor import Association, AssociationKind
from errors import DuplicateAliasError
from meta import Meta
from naming import Alias, default_foreign_key, model_names, resolve_names

def has_many(
    source: type,
    target: type,
    alias: Optional[Alias] = None,
    foreign_key: Optional[str] = None
) -> Association:
    """
    Declare that each source row owns many target rows. The foreign key lives on the target.
    """

    names = _resolve(target, alias, alias_is_plural=True)
    source_key = source.primary_key
    foreign_key = foreign_key or default_foreign_key(_singular(source), source_key, source.underscored)

    association = Association(
        kind=AssociationKind.HAS_MANY,
        source=source,
        target=target,
        names=names,
        foreign_key=foreign_key,
        source_key=source_key,
        target_key=target.primary_key
    )
    _check_available(association)

    _inject_attribute(target, foreign_key, source.attributes[source_key])
    return _register(association)

def belongs_to(
    source: type,
    target: type,
    alias: Optional[Alias] = None,
    foreign_key: Optional[str] = None
) -> Association:
    """
    Declare that each source row references one target row. The foreign key lives on the source.
    """

    names = _resolve(target, alias, alias_is_plural=False)
    target_key = target.primary_key
    foreign_key = foreign_key or default_foreign_key(names.key_singular, target_key, source.underscored)

    association = Association(
        kind=AssociationKind.BELONGS_TO,
        source=source,
        target=target,
        names=names,
        foreign_key=foreign_key,
        source_key=source.primary_key,
        target_key=target_key
    )
    _check_available(association)

    _inject_attribute(source, foreign_key, target.attributes[target_key])
    return _register(association)

def belongs_to_many(
    source: type,
    target: type,
    through: Union[str, type],
    alias: Optional[Alias] = None,
    foreign_key: Optional[str] = None,
    other_key: Optional[str] = None,
    timestamps: bool = True
) -> Association:
    """
    Declare a many-to-many relationship through a junction model.

    Parameters:
        source (Model): Owning model.
        target (Model): Associated model. May be the source itself.
        through (str | Model): Junction. A name reuses the junction the source or target
            already uses under that name, or a model defined under that model or table name;
            otherwise a junction model is synthesized. A model is reused as-is, gaining only
            the key columns it lacks.
        alias (str | Mapping): Optional. Alias, see naming.resolve_names.
        foreign_key (str): Optional. Junction column referencing the source.
        other_key (str): Optional. Junction column referencing the target.
        timestamps (bool): Optional. Default True. Give a synthesized junction
            createdAt/updatedAt columns.
    """

    names = _resolve(target, alias, alias_is_plural=True)
    source_key = source.primary_key
    target_key = target.primary_key
    foreign_key = foreign_key or default_foreign_key(_singular(source), source_key, source.underscored)
    if other_key is None:
        other_key = default_foreign_key(_singular(target), target_key, source.underscored)
        if other_key == foreign_key:
            other_key = default_foreign_key(names.key_singular, target_key, source.underscored)

    # Validate against a placeholder junction first; the real one may not exist yet.
    _check_available(Association(
        kind=AssociationKind.BELONGS_TO_MANY,
        source=source,
        target=target,
        names=names,
        foreign_key=foreign_key,
        source_key=source_key,
        target_key=target_key,
        other_key=other_key
    ))

    junction = _junction(source, target, through, foreign_key, other_key, timestamps)
    association = Association(
        kind=AssociationKind.BELONGS_TO_MANY,
        source=source,
        target=target,
        names=names,
        foreign_key=foreign_key,
        source_key=source_key,
        target_key=target_key,
        through=junction,
        other_key=other_key
    )
    return _register(association)

def _singular(model: type) -> str:
    return model_names(model.model_name, model.singular_name, model.plural_name)[0]

def _resolve(target: type, alias: Optional[Alias], alias_is_plural: bool):
    return resolve_names(
        target.model_name,
        alias,
        alias_is_plural=alias_is_plural,
        singular_name=target.singular_name,
        plural_name=target.plural_name
    )

def _check_available(association: Association):
    source = association.source
    alias = association.alias

    if alias in source.associations:
        raise DuplicateAliasError(source.model_name, alias)
    if alias in source.attributes or hasattr(source, alias):
        raise DuplicateAliasError(source.model_name, alias, "collides with an attribute")
    for name, (_, alternate) in accessor_names(association).items():
        if not alternate and not is_name_free(source, name):
            raise DuplicateAliasError(
                source.model_name,
                alias,
                f"would redefine accessor '{name}'"
            )

def _inject_attribute(model: type, name: str, referenced: Column):
    """
    Add a foreign key column typed like the column it references, unless the model has it.
    """

    if name not in model.attributes:
        model._attributes[name] = referenced.copy(primary_key=False, allow_null=True)

def _junction(
    source: type,
    target: type,
    through: Union[str, type],
    foreign_key: str,
    other_key: str,
    timestamps: bool
) -> type:
    source_key_column = source.attributes[source.primary_key]
    target_key_column = target.attributes[target.primary_key]

    if isinstance(through, str):
        junction = source._junctions.get(through) or target._junctions.get(through) \
            or _defined_model(through)
        if junction is None:
            # Imported here: model imports this module.
            from model import Model

            junction = Model.define(
                through,
                {
                    foreign_key: source_key_column.copy(primary_key=True, allow_null=False),
                    other_key: target_key_column.copy(primary_key=True, allow_null=False)
                },
                timestamps=timestamps,
                underscored=source.underscored,
                freeze_table_name=True
            )
    else:
        junction = through

    _inject_attribute(junction, foreign_key, source_key_column)
    _inject_attribute(junction, other_key, target_key_column)

    source._junctions[junction.model_name] = junction
    target._junctions[junction.model_name] = junction
    return junction

def _defined_model(name: str) -> Optional[type]:
    """
    Model already defined under the given model name or table name.
    """

    model = Meta.lookup(name)
    if model is not None:
        return model
    for model in Meta.defined_models():
        if model.table_name == name:
            return model
    return None

def _register(association: Association) -> Association:
    association.source._associations[association.alias] = association
    attach_accessors(association)
    return association
