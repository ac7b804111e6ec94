"""
Errors raised by the ORM.

Declaration errors are raised synchronously from ``has_many``/``belongs_to``/
``belongs_to_many``. Query-time errors are raised from the awaited call.
Database driver errors are never wrapped and reach the caller unchanged.
"""

class OrmError(Exception):
    """
    Base class for every error raised by this ORM.
    """

class DuplicateAliasError(OrmError):
    """
    An association alias (or one of its accessor names) is already taken on the source model.
    """

    def __init__(self, model_name: str, alias: str, reason: str = "is already declared"):
        self.model_name = model_name
        self.alias = alias
        super().__init__(f"Association alias '{alias}' on model '{model_name}' {reason}")

class UnresolvableIncludeError(OrmError):
    """
    An include references an association the model does not declare.
    """

    def __init__(self, model_name: str, alias: str):
        self.model_name = model_name
        self.alias = alias
        super().__init__(f"'{alias}' is not associated to model '{model_name}'")

class ContextBindingMismatchError(OrmError):
    """
    A record bound to one context was about to be attached under another.
    """

    def __init__(self, expected, actual):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Record bound to context {actual!r} cannot be used under context {expected!r}")

class ConnectionNotEstablishedError(OrmError):
    """
    A query was issued before a connection was established.
    """

class ConfigurationError(OrmError):
    """
    Connection credentials are missing or incomplete.
    """
