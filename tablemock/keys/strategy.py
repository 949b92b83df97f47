from enum import Enum


class KeyStrategy(str, Enum):
    IDENTITY = "identity"
    COMPOSITE = "composite"
