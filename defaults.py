from enum import Enum

class DefaultValue(Enum):
    """
    Defaults applied when a model or association leaves something unspecified.
    """

    VARCHAR_LENGTH = 255
    PRIMARY_KEY = "id"
    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"
