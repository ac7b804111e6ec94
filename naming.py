"""
Naming rules for associations.

Every string that ends up as an association alias key or as part of a
generated accessor name (``getAssignments``, ``addTask``) comes out of this
module. The alias key keeps the caller's casing so that includes match what
was declared; only the accessor fragment derived from a single-string alias
gets its first letter capitalized.
"""

from typing import Mapping, NamedTuple, Optional, Union

import inflection

from defaults import DefaultValue

Alias = Union[str, Mapping[str, str]]

class AliasNames(NamedTuple):
    key_singular: str
    key_plural: str
    method_singular: str
    method_plural: str
    # Capitalized spellings registered alongside verbatim two-form aliases.
    alternate_singular: Optional[str] = None
    alternate_plural: Optional[str] = None

    def method_fragments(self, plural: bool) -> tuple[str, ...]:
        """
        Accessor name fragments for the singular or plural form, primary spelling first.
        """

        primary, alternate = \
            (self.method_plural, self.alternate_plural) if plural \
            else (self.method_singular, self.alternate_singular)
        if alternate is None or alternate == primary:
            return (primary,)
        return (primary, alternate)

def uppercase_first(value: str) -> str:
    return value[:1].upper() + value[1:]

def singularize(word: str) -> str:
    return inflection.singularize(word)

def pluralize(word: str) -> str:
    return inflection.pluralize(word)

def model_names(
    model_name: str,
    singular_name: Optional[str] = None,
    plural_name: Optional[str] = None
) -> tuple[str, str]:
    """
    Singular and plural display names of a model. Explicit names win over inflection.
    """

    return (
        singular_name or singularize(model_name),
        plural_name or pluralize(model_name)
    )

def resolve_names(
    base_name: str,
    alias: Optional[Alias] = None,
    alias_is_plural: bool = True,
    singular_name: Optional[str] = None,
    plural_name: Optional[str] = None
) -> AliasNames:
    """
    Compute alias keys and accessor name fragments for an association.

    Parameters:
        base_name (str): Model name of the association target.
        alias (str | Mapping): Optional. Either a single alias string or a mapping with
            "singular" and "plural" keys.
        alias_is_plural (bool): Optional. Default True. Whether a single-string alias names
            the plural form (has-many, belongs-to-many) or the singular form (belongs-to).
        singular_name (str): Optional. Target's declared singular name, used without alias.
        plural_name (str): Optional. Target's declared plural name, used without alias.
    """

    if isinstance(alias, Mapping):
        singular, plural = alias["singular"], alias["plural"]
        return AliasNames(
            key_singular=singular,
            key_plural=plural,
            method_singular=singular,
            method_plural=plural,
            alternate_singular=uppercase_first(singular),
            alternate_plural=uppercase_first(plural)
        )

    if alias:
        if alias_is_plural:
            singular, plural = singularize(alias), alias
        else:
            singular, plural = alias, pluralize(alias)
    else:
        singular, plural = model_names(base_name, singular_name, plural_name)

    return AliasNames(
        key_singular=singular,
        key_plural=plural,
        method_singular=uppercase_first(singular),
        method_plural=uppercase_first(plural)
    )

def default_foreign_key(name: str, key: str, underscored: bool = False) -> str:
    """
    Foreign key name for a model or alias name and the key it references.

    Parts are joined camel case, keeping the case of the first letter: user + id -> userId,
    Parent + id -> ParentId. Underscored models get snake case: Parent + id -> parent_id.
    """

    if underscored:
        return inflection.underscore(f"{name}_{key}")
    first, *rest = f"{name}_{key}".split("_")
    return first + "".join([uppercase_first(part) for part in rest])

def timestamp_columns(underscored: bool = False) -> tuple[str, str]:
    """
    Names of the created and updated timestamp columns.
    """

    names = (DefaultValue.CREATED_AT.value, DefaultValue.UPDATED_AT.value)
    if underscored:
        return tuple([inflection.underscore(name) for name in names])
    return names

def default_table_name(model_name: str, freeze_table_name: bool = False) -> str:
    if freeze_table_name:
        return model_name
    return pluralize(model_name)
