from __future__ import annotations
from typing import Optional


class BridgeError(ValueError):
    """Base class for every structural defect found while loading or synthesizing."""


class MalformedHeader(BridgeError):
    pass


class TruncatedFile(BridgeError):
    pass


class InconsistentVariableCount(BridgeError):
    pass


class InvalidFieldElement(BridgeError):
    def __init__(self, value, line: Optional[int] = None):
        self.value = value
        self.line = line
        where = f" (line {line})" if line is not None else ""
        super().__init__(f"Invalid field element {value!r}{where}")


class MalformedRecord(BridgeError):
    def __init__(self, line: int, reason: str):
        self.line = line
        self.reason = reason
        super().__init__(f"Malformed record on line {line}: {reason}")


class MissingWitnessValue(BridgeError):
    def __init__(self, index: int):
        self.index = index
        super().__init__(f"Witness has no value for variable {index}")


class UnknownVariableIndex(BridgeError):
    # Internal invariant: every index is bound-checked at load time.
    def __init__(self, index: int):
        self.index = index
        super().__init__(f"Index {index} is not a valid variable")
