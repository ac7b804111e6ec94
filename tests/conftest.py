"""
Pytest configuration and fixtures.
"""

import sqlite3

import pytest

from dialects import SQLITE
from executor import Executor
from meta import Meta

class Context:
    """
    Opaque caller-supplied context used throughout the tests.
    """

    def __init__(self, value):
        self.value = value

    def __repr__(self):
        return f"Context({self.value!r})"

@pytest.fixture(autouse=True)
def sqlite_connection():
    """
    Attach a fresh in-memory SQLite database to the executor for each test.
    """

    connection = sqlite3.connect(":memory:", check_same_thread=False, isolation_level=None)
    Executor.use_connection(connection, SQLITE)

    yield connection

    Executor.close_connection()

@pytest.fixture(autouse=True)
def model_registry():
    """
    Forget models defined by a test, so names can be reused by the next one.
    """

    Meta.clear_registry()

    yield

    Meta.clear_registry()

@pytest.fixture
def ctx1():
    return Context("ctx1")

@pytest.fixture
def ctx2():
    return Context("ctx2")
