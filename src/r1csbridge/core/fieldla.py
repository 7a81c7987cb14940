from __future__ import annotations
import re
from typing import Any

from .errors import InvalidFieldElement, MalformedHeader

# Scalar field of BN254, the curve the proving backend works over.
BN254_PRIME = 21888242871839275222246405745257275088548364400416034343698204186575808495617

_DECIMAL = re.compile(r"-?[0-9]+")
_UNSIGNED = re.compile(r"[0-9]+")

def modp(x: int, p: int) -> int:
    r = x % p
    return r if r >= 0 else r + p

def parse_characteristic(s: Any) -> int:
    """Header `field_characteristic`: a decimal string of arbitrary size."""
    if not isinstance(s, str) or not _UNSIGNED.fullmatch(s):
        raise MalformedHeader(f"field_characteristic must be a decimal string, got {s!r}")
    return int(s)

def parse_field_element(s: Any, p: int = BN254_PRIME) -> int:
    """
    Decimal string -> canonical element of F_p.
    Values >= p (and negative values) are reduced mod p rather than rejected,
    the same way the backend's scalar type is built from an integer.
    """
    # int() alone would accept whitespace, '+' and '_' separators
    if not isinstance(s, str) or not _DECIMAL.fullmatch(s):
        raise InvalidFieldElement(s)
    return modp(int(s), p)

def parse_variable_index(v: Any) -> int:
    if isinstance(v, bool) or not isinstance(v, int) or v < 0:
        raise ValueError(f"variable index must be a non-negative integer, got {v!r}")
    return v
