from dataclasses import dataclass
from enum import Enum
from typing import Optional, TYPE_CHECKING

from naming import AliasNames

if TYPE_CHECKING:
    from model import Model

class AssociationKind(Enum):
    """
    Kinds of association a model can declare.
    """

    HAS_MANY = "hasMany"
    BELONGS_TO = "belongsTo"
    BELONGS_TO_MANY = "belongsToMany"

@dataclass(frozen=True)
class Association:
    """
    One declared relationship. Built once by a declaration call and shared by every
    context the source model is bound to.

    Key layout per kind:
        HAS_MANY: target.foreign_key references source.source_key.
        BELONGS_TO: source.foreign_key references target.target_key.
        BELONGS_TO_MANY: through.foreign_key references source.source_key and
            through.other_key references target.target_key.
    """

    kind: AssociationKind
    source: type["Model"]
    target: type["Model"]
    names: AliasNames
    foreign_key: str
    source_key: str
    target_key: str
    through: Optional[type["Model"]] = None
    other_key: Optional[str] = None

    @property
    def alias(self) -> str:
        """
        Key the association is registered and included under.
        """

        if self.kind is AssociationKind.BELONGS_TO:
            return self.names.key_singular
        return self.names.key_plural

    @property
    def is_multiple(self) -> bool:
        return self.kind is not AssociationKind.BELONGS_TO

    @property
    def is_self_association(self) -> bool:
        return self.source is self.target

    @property
    def foreign_identifier(self) -> str:
        """
        Column identifying the target: the junction's other key for many-to-many,
        the foreign key otherwise.
        """

        if self.kind is AssociationKind.BELONGS_TO_MANY:
            return self.other_key
        return self.foreign_key

    def __repr__(self) -> str:
        parts = [
            self.kind.value,
            f"{self.source.model_name}->{self.target.model_name}",
            f"as={self.alias!r}",
            f"foreign_key={self.foreign_key!r}"
        ]
        if self.through is not None:
            parts.append(f"through={self.through.model_name!r}")
            parts.append(f"other_key={self.other_key!r}")
        return f"<Association {' '.join(parts)}>"
