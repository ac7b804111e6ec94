"""
Include resolution and binding of eager loaded results.

``resolve_includes`` turns the ``include`` option of a query into
``IncludeSpec`` objects whose models are bound to the querying view's
context. The executor fetches a plain tree of row dicts from those specs, and
``bind_rows`` walks the tree depth first, building every node as a record of
its IncludeSpec's bound model.
"""

from typing import Any, Iterable, Mapping, NamedTuple, Optional

from bound import BoundModel, same_context
from descriptor import Association
from errors import ContextBindingMismatchError, UnresolvableIncludeError

class IncludeSpec(NamedTuple):
    association: Association
    model: BoundModel
    include: tuple["IncludeSpec", ...] = ()

    @property
    def alias(self) -> str:
        return self.association.alias

def _canonical(model: Any) -> Optional[type]:
    if isinstance(model, BoundModel):
        return model.model
    return model

def _find_association(source: type, model: Optional[type], alias: Optional[str]) -> Association:
    if alias is not None:
        association = source.associations.get(alias)
        if association is None or (model is not None and association.target is not model):
            raise UnresolvableIncludeError(source.model_name, alias)
        return association

    if model is None:
        raise UnresolvableIncludeError(source.model_name, "<missing model>")

    candidates = [
        association for association in source.associations.values() \
        if association.target is model
    ]
    if len(candidates) != 1:
        # Without an alias the target has to identify the association on its own.
        raise UnresolvableIncludeError(source.model_name, model.model_name)
    return candidates[0]

def resolve_includes(bound_model: BoundModel, include: Optional[Iterable]) -> tuple[IncludeSpec, ...]:
    """
    Resolve an include list against a bound model's associations.

    Parameters:
        bound_model (BoundModel): View issuing the query.
        include (list): Items are a model, a bound model, or a mapping with "model",
            "as" (or "alias") and a nested "include".
    """

    if not include:
        return ()

    specs = []
    for item in include:
        if isinstance(item, Mapping):
            model = _canonical(item.get("model"))
            alias = item.get("as", item.get("alias"))
            nested = item.get("include")
        else:
            model, alias, nested = _canonical(item), None, None

        association = _find_association(bound_model.model, model, alias)
        target = association.target.contextify(bound_model.ctx)
        specs.append(IncludeSpec(association, target, resolve_includes(target, nested)))
    return tuple(specs)

def bind_row(bound_model: BoundModel, row: Mapping, includes: tuple[IncludeSpec, ...] = ()):
    """
    Build a record from a result row, binding its included rows recursively.
    """

    aliases = {spec.alias for spec in includes}
    record = bound_model.build(
        {name: value for name, value in row.items() if name not in aliases},
        is_new_record=False
    )

    for spec in includes:
        if not same_context(spec.model.ctx, bound_model.ctx):
            raise ContextBindingMismatchError(bound_model.ctx, spec.model.ctx)

        nested = row.get(spec.alias)
        if spec.association.is_multiple:
            value = [bind_row(spec.model, child, spec.include) for child in nested or ()]
        else:
            value = None if nested is None else bind_row(spec.model, nested, spec.include)
        record._include(spec.alias, value)
    return record

def bind_rows(bound_model: BoundModel, rows: Iterable[Mapping], includes: tuple[IncludeSpec, ...] = ()) -> list:
    return [bind_row(bound_model, row, includes) for row in rows]
