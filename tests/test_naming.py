"""Tests for alias and accessor naming."""

from naming import (
    default_foreign_key,
    default_table_name,
    model_names,
    resolve_names,
    timestamp_columns,
)


def test_two_form_alias_is_used_verbatim():
    names = resolve_names("task", {"singular": "task", "plural": "taskz"})

    assert names.key_singular == "task"
    assert names.key_plural == "taskz"
    assert names.method_singular == "task"
    assert names.method_plural == "taskz"


def test_two_form_alias_reports_capitalized_spelling_as_alternate():
    names = resolve_names("task", {"singular": "task", "plural": "taskz"})

    assert names.method_fragments(plural=True) == ("taskz", "Taskz")
    assert names.method_fragments(plural=False) == ("task", "Task")


def test_two_form_alias_already_capitalized_has_single_spelling():
    names = resolve_names("task", {"singular": "Job", "plural": "Jobs"})

    assert names.method_fragments(plural=True) == ("Jobs",)
    assert names.method_fragments(plural=False) == ("Job",)


def test_string_alias_capitalizes_method_fragment_only():
    names = resolve_names("task", "assignments")

    assert names.key_plural == "assignments"
    assert names.key_singular == "assignment"
    assert names.method_plural == "Assignments"
    assert names.method_singular == "Assignment"


def test_string_alias_casing_is_otherwise_untouched():
    names = resolve_names("task", "ASSIGNMENTS")

    assert names.key_plural == "ASSIGNMENTS"
    assert names.method_plural == "ASSIGNMENTS"
    assert names.method_singular == "ASSIGNMENT"


def test_singular_string_alias_for_belongs_to():
    names = resolve_names("user", "owner", alias_is_plural=False)

    assert names.key_singular == "owner"
    assert names.key_plural == "owners"
    assert names.method_singular == "Owner"


def test_names_derived_from_model_name_without_alias():
    names = resolve_names("user")

    assert (names.key_singular, names.key_plural) == ("user", "users")
    assert (names.method_singular, names.method_plural) == ("User", "Users")


def test_declared_model_names_win_over_inflection():
    names = resolve_names("task", singular_name="assignment", plural_name="assignments")

    assert names.key_plural == "assignments"
    assert names.method_singular == "Assignment"
    assert model_names("task", "assignment", "assignments") == ("assignment", "assignments")


def test_resolution_is_deterministic():
    assert resolve_names("Person", "Children") == resolve_names("Person", "Children")


def test_default_foreign_key_keeps_first_letter_case():
    assert default_foreign_key("user", "id") == "userId"
    assert default_foreign_key("Person", "id") == "PersonId"
    assert default_foreign_key("OWNER", "id") == "OWNERId"
    assert default_foreign_key("taskItem", "id") == "taskItemId"


def test_underscored_foreign_key():
    assert default_foreign_key("user", "id", underscored=True) == "user_id"
    assert default_foreign_key("Parent", "id", underscored=True) == "parent_id"
    assert default_foreign_key("taskItem", "id", underscored=True) == "task_item_id"


def test_timestamp_columns():
    assert timestamp_columns() == ("createdAt", "updatedAt")
    assert timestamp_columns(underscored=True) == ("created_at", "updated_at")


def test_default_table_name():
    assert default_table_name("user") == "users"
    assert default_table_name("Person") == "People"
    assert default_table_name("Person", freeze_table_name=True) == "Person"
