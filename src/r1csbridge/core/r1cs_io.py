from __future__ import annotations
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Tuple

import numpy as np
from scipy.sparse import csr_matrix

from .errors import InconsistentVariableCount, InvalidFieldElement, MalformedHeader, MalformedRecord
from .fieldla import BN254_PRIME, parse_characteristic, parse_field_element, parse_variable_index
from .records import open_records, read_records

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class Header:
    extension_degree: int
    field_characteristic: int
    input_variables: Tuple[int, ...]
    n_constraints: int
    n_variables: int
    output_variables: Tuple[int, ...]

    @classmethod
    def from_json(cls, obj: Dict[str, Any]) -> "Header":
        missing = [k for k in ("extension_degree", "field_characteristic", "input_variables",
                               "n_constraints", "n_variables", "output_variables") if k not in obj]
        if missing:
            raise MalformedHeader(f"header missing keys: {', '.join(missing)}")

        def count(key):
            v = obj[key]
            if isinstance(v, bool) or not isinstance(v, int) or v < 0:
                raise MalformedHeader(f"{key} must be a non-negative integer, got {v!r}")
            return v

        def indices(key, unique=False):
            v = obj[key]
            if not isinstance(v, list):
                raise MalformedHeader(f"{key} must be an array of variable indices")
            try:
                out = tuple(parse_variable_index(i) for i in v)
            except ValueError as e:
                raise MalformedHeader(f"{key}: {e}") from e
            if unique and len(set(out)) != len(out):
                raise MalformedHeader(f"{key} contains duplicate indices")
            return out

        return cls(
            extension_degree=count("extension_degree"),
            field_characteristic=parse_characteristic(obj["field_characteristic"]),
            input_variables=indices("input_variables", unique=True),
            n_constraints=count("n_constraints"),
            n_variables=count("n_variables"),
            output_variables=indices("output_variables"),
        )

@dataclass(frozen=True)
class Term:
    coeff: int
    var: int

@dataclass(frozen=True)
class Constraint:
    a: Tuple[Term, ...]
    b: Tuple[Term, ...]
    c: Tuple[Term, ...]

    def indices(self):
        for t in self.a + self.b + self.c:
            yield t.var

@dataclass(frozen=True)
class R1CSFile:
    header: Header
    constraints: Tuple[Constraint, ...]

def _term_from_json(t, line: int, p: int) -> Term:
    # [coeff, var] as written by the exporter, or the {"coeff", "var"} object form
    if isinstance(t, dict) and "coeff" in t and "var" in t:
        c, v = t["coeff"], t["var"]
    elif isinstance(t, list) and len(t) == 2:
        c, v = t
    else:
        raise MalformedRecord(line, f"unrecognized term {t!r}")
    try:
        coeff = parse_field_element(c, p)
    except InvalidFieldElement as e:
        raise InvalidFieldElement(c, line=line) from e
    try:
        var = parse_variable_index(v)
    except ValueError as e:
        raise MalformedRecord(line, str(e)) from e
    return Term(coeff, var)

def constraint_from_json(obj, line: int, p: int = BN254_PRIME) -> Constraint:
    if isinstance(obj, dict) and all(k in obj for k in ("A", "B", "C")):
        A_raw, B_raw, C_raw = obj["A"], obj["B"], obj["C"]
    elif isinstance(obj, list) and len(obj) == 3:
        A_raw, B_raw, C_raw = obj
    else:
        raise MalformedRecord(line, "constraint must be an object with keys A, B, C or an [A, B, C] array")
    lcs = []
    for name, raw in (("A", A_raw), ("B", B_raw), ("C", C_raw)):
        if not isinstance(raw, list):
            raise MalformedRecord(line, f"{name} must be an array of terms")
        lcs.append(tuple(_term_from_json(t, line, p) for t in raw))
    return Constraint(*lcs)

def parse_r1cs(stream, p: int = BN254_PRIME) -> R1CSFile:
    header_obj, rows = read_records(stream)
    header = Header.from_json(header_obj)
    constraints = tuple(constraint_from_json(obj, line, p) for line, obj in rows)
    return R1CSFile(header=header, constraints=constraints)

@dataclass(frozen=True)
class R1CS:
    """
    Circuit descriptor: the public/private partition of the variable space
    plus the constraint rows. Index 0 (the constant one) belongs to neither
    list. Both lists are ascending; that is the allocation order.
    """
    input_variables: Tuple[int, ...]
    witness_variables: Tuple[int, ...]
    constraints: Tuple[Constraint, ...]
    header: Header

    @property
    def n_vars(self) -> int:
        return self.header.n_variables

    @classmethod
    def from_file(cls, f: R1CSFile) -> "R1CS":
        h = f.header
        n = h.n_variables

        def check(idx, where):
            if idx >= n:
                raise InconsistentVariableCount(
                    f"{where} references variable {idx} but n_variables is {n}")

        for v in h.input_variables:
            check(v, "input_variables")
        for v in h.output_variables:
            check(v, "output_variables")
        if 0 in h.input_variables:
            raise InconsistentVariableCount("the constant variable 0 cannot be a public input")
        for i, con in enumerate(f.constraints):
            for v in con.indices():
                check(v, f"constraint {i}")

        if h.n_constraints != len(f.constraints):
            logger.warning("Header declares %d constraints but file has %d",
                           h.n_constraints, len(f.constraints))

        inputs = set(h.input_variables)
        witness = [v for v in range(1, n) if v not in inputs]
        return cls(
            input_variables=tuple(sorted(inputs)),
            witness_variables=tuple(witness),
            constraints=f.constraints,
            header=h,
        )

def load_r1cs(path: str | Path, p: int = BN254_PRIME) -> R1CS:
    with open_records(path) as f:
        r = R1CS.from_file(parse_r1cs(f, p))
    logger.debug("Loaded R1CS from %s: %d constraints, %d inputs, %d witness variables",
                 path, len(r.constraints), len(r.input_variables), len(r.witness_variables))
    return r


def _build_patterns(constraints, n_rows, n_cols):
    def build_from(terms_index):
        rows, cols = [], []
        for i, con in enumerate(constraints):
            for t in (con.a, con.b, con.c)[terms_index]:
                rows.append(i); cols.append(t.var)
        M = csr_matrix((np.ones(len(rows), dtype=np.int8),
                        (np.array(rows, dtype=int), np.array(cols, dtype=int))), shape=(n_rows, max(n_cols, 1)))
        # duplicate terms are summed by csr_matrix; this is a support pattern
        M.data[:] = 1
        return M
    return build_from(0), build_from(1), build_from(2)

def summarize_r1cs(r: R1CS) -> Dict[str, int]:
    m = len(r.constraints)
    mult_rows = 0
    if m:
        Apat, Bpat, _ = _build_patterns(r.constraints, m, r.n_vars)
        mult_rows = int(((Apat.getnnz(axis=1) > 0) & (Bpat.getnnz(axis=1) > 0)).sum())
    return {
        "n_constraints": m,
        "n_vars": int(r.n_vars),
        "n_inputs": len(r.input_variables),
        "n_witness": len(r.witness_variables),
        "n_outputs": len(r.header.output_variables),
        "prime_bits": int(r.header.field_characteristic.bit_length()),
        "multiplicative_rows": mult_rows,
        "linear_rows": m - mult_rows,
    }
