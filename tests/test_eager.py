"""Tests for include resolution and binding of eager loaded results."""

import pytest

from column import Column
from eager import IncludeSpec, bind_row, resolve_includes
from errors import ContextBindingMismatchError, UnresolvableIncludeError
from model import Model


def _blog():
    User = Model.define("user", {"name": Column(str)})
    Task = Model.define("task", {"title": Column(str)})
    Comment = Model.define("comment", {"body": Column(str)})
    Project = Model.define("project", {"name": Column(str)})
    User.has_many(Task, alias="assignments", foreign_key="userId")
    Task.belongs_to(User, alias="owner", foreign_key="userId")
    Task.has_many(Comment)
    User.belongs_to_many(Project, through="Membership")
    return User, Task, Comment, Project


async def _seed(User, Task, Comment, Project):
    await Model.sync_all(User, Task, Comment, Project, force=True)
    mary = await User.create({"name": "Mary"})
    await User.create({"name": "John"})
    write = await mary.createAssignment({"title": "write"})
    await mary.createAssignment({"title": "review"})
    await write.createComment({"body": "first"})
    await write.createComment({"body": "second"})
    await mary.createProject({"name": "orm"})
    return mary


class TestResolveIncludes:
    """Test include resolution."""

    def test_targets_are_bound_to_querying_context(self, ctx1, ctx2):
        User, Task, Comment, _ = _blog()

        specs = resolve_includes(User.contextify(ctx1), [
            {"model": Task.contextify(ctx2), "as": "assignments", "include": [Comment]},
        ])

        assert specs[0].alias == "assignments"
        assert specs[0].model == Task.contextify(ctx1)
        assert specs[0].include[0].model == Comment.contextify(ctx1)

    def test_alias_lookup_keeps_declared_casing(self, ctx1):
        User, Task, _, _ = _blog()

        with pytest.raises(UnresolvableIncludeError):
            resolve_includes(User.contextify(ctx1), [{"model": Task, "as": "Assignments"}])

    def test_alias_must_belong_to_included_model(self, ctx1):
        User, _, Comment, _ = _blog()

        with pytest.raises(UnresolvableIncludeError):
            resolve_includes(User.contextify(ctx1), [{"model": Comment, "as": "assignments"}])

    def test_model_without_alias(self, ctx1):
        _, Task, Comment, _ = _blog()

        specs = resolve_includes(Task.contextify(ctx1), [Comment])

        assert specs[0].alias == "comments"

    def test_empty_include(self, ctx1):
        User, _, _, _ = _blog()

        assert resolve_includes(User.contextify(ctx1), None) == ()


def test_bind_row_rejects_nested_view_with_other_context(ctx1, ctx2):
    User, Task, _, _ = _blog()
    association = User.associations["assignments"]
    spec = IncludeSpec(association, Task.contextify(ctx2))

    with pytest.raises(ContextBindingMismatchError):
        bind_row(User.contextify(ctx1), {"id": 1, "assignments": [{"id": 1}]}, (spec,))


def test_bind_row_builds_persisted_records(ctx1):
    User, Task, _, _ = _blog()
    spec = IncludeSpec(User.associations["assignments"], Task.contextify(ctx1))

    user = bind_row(User.contextify(ctx1), {"id": 1, "assignments": []}, (spec,))

    assert user.ctx is ctx1
    assert not user.is_new_record
    assert user.assignments == []
    assert "assignments" not in user.primary_key_values()


@pytest.mark.asyncio
async def test_nested_includes_carry_root_context(ctx1):
    User, Task, Comment, Project = _blog()
    await _seed(User, Task, Comment, Project)

    users = await User.contextify(ctx1).find_all(include=[
        {"model": Task, "as": "assignments", "include": [{"model": Comment, "as": "comments"}]},
    ])

    mary, john = users
    assert mary.ctx is ctx1
    assert [task.title for task in mary.assignments] == ["write", "review"]
    assert [comment.body for comment in mary.assignments[0].comments] == ["first", "second"]
    assert mary.assignments[1].comments == []
    for task in mary.assignments:
        assert task.ctx is ctx1
        for comment in task.comments:
            assert comment.ctx is ctx1
    assert john.ctx is ctx1
    assert john.assignments == []


@pytest.mark.asyncio
async def test_belongs_to_include_with_nested_has_many(ctx1):
    User, Task, Comment, Project = _blog()
    await _seed(User, Task, Comment, Project)

    task = await Task.contextify(ctx1).find({"title": "review"}, include=[
        {"model": User, "as": "owner", "include": [{"model": Task, "as": "assignments"}]},
    ])

    assert task.owner.name == "Mary"
    assert task.owner.ctx is ctx1
    assert [t.title for t in task.owner.assignments] == ["write", "review"]
    assert all(t.ctx is ctx1 for t in task.owner.assignments)


@pytest.mark.asyncio
async def test_many_to_many_include(ctx1):
    User, Task, Comment, Project = _blog()
    await _seed(User, Task, Comment, Project)

    users = await User.contextify(ctx1).find_all(include=[Project])

    mary, john = users
    assert [project.name for project in mary.projects] == ["orm"]
    assert mary.projects[0].ctx is ctx1
    assert john.projects == []


@pytest.mark.asyncio
async def test_accessor_get_with_include(ctx1):
    User, Task, Comment, Project = _blog()
    await _seed(User, Task, Comment, Project)
    mary = await User.contextify(ctx1).find({"name": "Mary"})

    tasks = await mary.getAssignments(include=[Comment])

    assert [len(task.comments) for task in tasks] == [2, 0]
    assert all(comment.ctx is ctx1 for comment in tasks[0].comments)


@pytest.mark.asyncio
async def test_round_trip_to_dict(ctx1):
    User, Task, Comment, Project = _blog()
    await _seed(User, Task, Comment, Project)

    mary = await User.contextify(ctx1).find({"name": "Mary"}, include=[{"model": Task, "as": "assignments"}])
    data = mary.to_dict()

    assert data["name"] == "Mary"
    assert [task["title"] for task in data["assignments"]] == ["write", "review"]
