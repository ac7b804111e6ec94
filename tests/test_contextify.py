"""Tests for context-bound model views."""

import asyncio

import pytest

from bound import BoundModel, same_context
from column import Column
from errors import UnresolvableIncludeError
from model import Model


def _user_and_task():
    User = Model.define("user", {"name": Column(str)})
    Task = Model.define("task", {"title": Column(str)})
    User.has_many(Task, alias="assignments", foreign_key="userId")
    Task.belongs_to(User, alias="owner", foreign_key="userId")
    return User, Task


class TestBinding:
    """Test the view returned by contextify."""

    def test_returns_bound_model(self, ctx1):
        User, _ = _user_and_task()

        bound = User.contextify(ctx1)

        assert isinstance(bound, BoundModel)
        assert bound.model is User
        assert bound.ctx is ctx1

    def test_does_not_mutate_canonical_model(self, ctx1, ctx2):
        User, Task = _user_and_task()
        attributes = dict(User.attributes)
        associations = dict(User.associations)

        User.contextify(ctx1)
        Task.contextify(ctx2)

        assert dict(User.attributes) == attributes
        assert dict(User.associations) == associations

    def test_delegates_schema_and_registry(self, ctx1):
        User, _ = _user_and_task()

        bound = User.contextify(ctx1)

        assert bound.attributes is not None
        assert "name" in bound.attributes
        assert bound.associations["assignments"] is User.associations["assignments"]
        assert bound.table_name == "users"
        assert bound.model_name == "user"

    def test_binding_twice_gives_equal_views(self, ctx1, ctx2):
        User, _ = _user_and_task()

        assert User.contextify(ctx1) == User.contextify(ctx1)
        assert User.contextify(ctx1) != User.contextify(ctx2)

    def test_rebinding_a_view(self, ctx1, ctx2):
        User, _ = _user_and_task()

        rebound = User.contextify(ctx1).contextify(ctx2)

        assert rebound.model is User
        assert rebound.ctx is ctx2

    def test_build_binds_without_persisting(self, ctx1):
        User, _ = _user_and_task()

        user = User.contextify(ctx1).build({"name": "Mary"})

        assert user.ctx is ctx1
        assert user.name == "Mary"
        assert user.is_new_record


def test_same_context_uses_identity_then_equality():
    first = object()

    assert same_context(first, first)
    assert same_context("tenant-a", "tenant-a")
    assert not same_context(first, object())


@pytest.mark.asyncio
async def test_create_binds_each_record_to_its_view(ctx1, ctx2):
    User, _ = _user_and_task()
    await Model.sync_all(User, force=True)

    user1 = await User.contextify(ctx1).create({"id": 1})
    user2 = await User.contextify(ctx2).create({"id": 2})

    assert user1.id == 1
    assert user1.ctx is ctx1
    assert user1.ctx.value == "ctx1"
    assert user2.id == 2
    assert user2.ctx is ctx2
    assert user1.bound_model == User.contextify(ctx1)


@pytest.mark.asyncio
async def test_interleaved_creates_do_not_share_context():
    User, _ = _user_and_task()
    await Model.sync_all(User, force=True)
    contexts = [object() for _ in range(5)]
    views = [User.contextify(ctx) for ctx in contexts]

    records = await asyncio.gather(*[
        views[index % len(views)].create({"name": f"user-{index}"})
        for index in range(25)
    ])

    for index, record in enumerate(records):
        assert record.ctx is contexts[index % len(contexts)]
        assert record.name == f"user-{index}"


@pytest.mark.asyncio
async def test_canonical_model_produces_unbound_records():
    User, _ = _user_and_task()
    await Model.sync_all(User, force=True)

    user = await User.create({"name": "Mary"})
    found = await User.find({"id": user.id})

    assert user.ctx is None
    assert found.ctx is None
    assert user.bound_model is User


@pytest.mark.asyncio
async def test_context_cannot_be_reassigned(ctx1, ctx2):
    User, _ = _user_and_task()
    await Model.sync_all(User, force=True)

    user = await User.contextify(ctx1).create({"name": "Mary"})

    with pytest.raises(AttributeError):
        user.ctx = ctx2
    assert user.ctx is ctx1


@pytest.mark.asyncio
async def test_find_and_find_all_bind_results(ctx1):
    User, _ = _user_and_task()
    await Model.sync_all(User, force=True)
    await User.create({"name": "Mary"})
    await User.create({"name": "John"})
    bound = User.contextify(ctx1)

    everyone = await bound.find_all()
    john = await bound.find({"name": "John"})
    nobody = await bound.find({"name": "Chris"})

    assert [user.name for user in everyone] == ["Mary", "John"]
    assert all(user.ctx is ctx1 for user in everyone)
    assert john.ctx is ctx1
    assert not john.is_new_record
    assert nobody is None
    assert await bound.count({"name": ["Mary", "John"]}) == 2


@pytest.mark.asyncio
async def test_unknown_include_alias_fails_before_querying(ctx1):
    User, Task = _user_and_task()

    # No tables exist: the error has to come from include resolution.
    with pytest.raises(UnresolvableIncludeError):
        await User.contextify(ctx1).find_all(include=[{"model": Task, "as": "tasks"}])


@pytest.mark.asyncio
async def test_include_of_unassociated_model_fails(ctx1):
    User, _ = _user_and_task()
    Project = Model.define("project")

    with pytest.raises(UnresolvableIncludeError):
        await User.contextify(ctx1).find_all(include=[Project])


@pytest.mark.asyncio
async def test_save_updates_changed_columns(ctx1):
    User, _ = _user_and_task()
    await Model.sync_all(User, force=True)
    bound = User.contextify(ctx1)
    user = await bound.create({"name": "Mary"})

    user.name = "Maria"
    await user.save()

    reloaded = await bound.find({"id": user.id})
    assert reloaded.name == "Maria"
    assert reloaded.ctx is ctx1
