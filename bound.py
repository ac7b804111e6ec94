"""
Context-bound model views.

``contextify(model, ctx)`` returns a ``BoundModel``: a view over one
canonical model and one caller-supplied context value. The view owns nothing
else. Schema and association lookups go to the canonical model; anything
that produces records (``build``, ``create``, ``find``, ``find_all``) builds
them with the view's context, and includes are resolved against views bound
to the same context. The canonical model is never modified by binding.
"""

from datetime import datetime
from typing import Any, Iterable, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from model import Model

def same_context(first: Any, second: Any) -> bool:
    """
    Contexts are compared by identity, then by equality.
    """

    return first is second or first == second

def contextify(model: type["Model"], ctx: Any) -> "BoundModel":
    return BoundModel(model, ctx)

class BoundModel:
    """
    A canonical model bound to a context.
    """

    __slots__ = ("_model", "_ctx")

    def __init__(self, model: type["Model"], ctx: Any):
        self._model = model
        self._ctx = ctx

    @property
    def model(self) -> type["Model"]:
        """
        Canonical model this view delegates to.
        """

        return self._model

    @property
    def ctx(self) -> Any:
        return self._ctx

    def __getattr__(self, name: str):
        if name in BoundModel.__slots__:
            raise AttributeError(name)
        return getattr(self._model, name)

    def contextify(self, ctx: Any) -> "BoundModel":
        return BoundModel(self._model, ctx)

    ########################################################################
    #************************* Record Production **************************#
    ########################################################################

    def build(self, values: Optional[dict] = None, is_new_record: bool = True, **attributes) -> "Model":
        """
        Instantiate a record bound to this view's context, without persisting it.
        """

        return self._model(
            {**(values or {}), **attributes},
            ctx=self._ctx,
            bound=self,
            is_new_record=is_new_record
        )

    async def create(self, values: Optional[dict] = None, logging=None, **attributes) -> "Model":
        """
        Build a record bound to this view's context and insert it.
        """

        record = self.build(values, **attributes)
        return await record.save(logging=logging)

    async def find_all(
        self,
        where: Optional[dict] = None,
        include: Optional[Iterable] = None,
        limit: Optional[int] = None,
        logging=None
    ) -> list["Model"]:
        """
        Fetch records matching ``where``, eager loading ``include``.

        Parameters:
            where (dict): Optional. Column name to value. Lists mean IN, None means IS NULL.
            include (list): Optional. Models, bound models, or mappings with "model", "as"
                and a nested "include".
            limit (int): Optional. Maximum number of root records.
            logging (callable): Optional. Receives each SQL statement issued.
        """

        # Imported here: eager imports this module.
        from eager import bind_rows, resolve_includes

        includes = resolve_includes(self, include)
        executor = self._model.executor
        if includes:
            rows = await executor.select_with_includes(where, includes, limit=limit, logging=logging)
        else:
            rows = await executor.select(where, limit=limit, logging=logging)
        return bind_rows(self, rows, includes)

    async def find(
        self,
        where: Optional[dict] = None,
        include: Optional[Iterable] = None,
        logging=None
    ) -> Optional["Model"]:
        records = await self.find_all(where=where, include=include, limit=1, logging=logging)
        return records[0] if records else None

    async def count(self, where: Optional[dict] = None, logging=None) -> int:
        return await self._model.executor.count(where, logging=logging)

    ########################################################################
    #**************************** Bulk Writes *****************************#
    ########################################################################

    async def update(self, values: dict, where: Optional[dict] = None, logging=None) -> int:
        """
        Update every row matching ``where``. Returns the number of rows updated.
        """

        values = dict(values)
        if self._model.timestamps:
            values.setdefault(self._model.timestamp_attributes[1], datetime.now())
        return await self._model.executor.update(values, where, logging=logging)

    async def destroy(self, where: Optional[dict] = None, logging=None) -> int:
        return await self._model.executor.delete(where, logging=logging)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, BoundModel):
            return NotImplemented
        return self._model is other._model and same_context(self._ctx, other._ctx)

    def __hash__(self) -> int:
        return hash(self._model)

    def __repr__(self) -> str:
        return f"<BoundModel {self._model.model_name} ctx={self._ctx!r}>"
