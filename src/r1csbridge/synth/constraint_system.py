from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional, Protocol, Tuple

import numpy as np

from ..core.fieldla import BN254_PRIME, modp
from ..core.matvec import first_nonzero, r1cs_residual_modp

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class Variable:
    kind: str   # "one" | "instance" | "witness"
    index: int

ONE = Variable("one", 0)

class LinearCombination:
    """Sum of coeff * variable. Repeated variables accumulate their coefficients."""

    def __init__(self, p: int = BN254_PRIME):
        self.p = p
        self.terms: Dict[Variable, int] = {}

    def add_term(self, coeff: int, var: Variable) -> "LinearCombination":
        self.terms[var] = modp(self.terms.get(var, 0) + coeff, self.p)
        return self

    def evaluate(self, value_of: Callable[[Variable], int]) -> int:
        acc = 0
        for var, coeff in self.terms.items():
            acc += coeff * value_of(var)
        return acc % self.p

    def __iter__(self) -> Iterator[Tuple[Variable, int]]:
        return iter(self.terms.items())

    def __len__(self) -> int:
        return len(self.terms)

    def __eq__(self, other) -> bool:
        return isinstance(other, LinearCombination) and self.terms == other.terms

    def __repr__(self) -> str:
        return f"LinearCombination({list(self.terms.items())!r})"

class ConstraintBuilder(Protocol):
    """What the synthesizer needs from a constraint-system backend."""
    one: Variable

    def new_lc(self) -> LinearCombination: ...
    def new_input_variable(self, value: int) -> Variable: ...
    def new_witness_variable(self, value: int) -> Variable: ...
    def enforce_constraint(self, a: LinearCombination, b: LinearCombination,
                           c: LinearCombination) -> bool: ...

class ConstraintSystem:
    """
    In-memory constraint system over F_p.

    Column layout matches the usual R1CS convention: column 0 is the
    constant one, then public (instance) variables in allocation order,
    then private (witness) variables. With construct_values=False (setup
    mode) assigned values are discarded and every constraint is accepted.
    """

    def __init__(self, p: int = BN254_PRIME, construct_values: bool = True):
        self.p = p
        self.construct_values = construct_values
        self.one = ONE
        self.num_instance_variables = 1
        self.num_witness_variables = 0
        self.instance_assignment: List[int] = [1] if construct_values else []
        self.witness_assignment: List[int] = []
        self.constraints: List[Tuple[LinearCombination, LinearCombination, LinearCombination]] = []

    @property
    def num_constraints(self) -> int:
        return len(self.constraints)

    def new_lc(self) -> LinearCombination:
        return LinearCombination(self.p)

    def new_input_variable(self, value: int) -> Variable:
        var = Variable("instance", self.num_instance_variables)
        self.num_instance_variables += 1
        if self.construct_values:
            self.instance_assignment.append(modp(value, self.p))
        return var

    def new_witness_variable(self, value: int) -> Variable:
        var = Variable("witness", self.num_witness_variables)
        self.num_witness_variables += 1
        if self.construct_values:
            self.witness_assignment.append(modp(value, self.p))
        return var

    def value(self, var: Variable) -> int:
        if not self.construct_values:
            raise ValueError("constraint system holds no assignment (setup mode)")
        if var.kind == "witness":
            return self.witness_assignment[var.index]
        return self.instance_assignment[var.index]

    def enforce_constraint(self, a: LinearCombination, b: LinearCombination,
                           c: LinearCombination) -> bool:
        """Record a * b = c; report whether the current assignment satisfies it."""
        self.constraints.append((a, b, c))
        if not self.construct_values:
            return True
        ok = (a.evaluate(self.value) * b.evaluate(self.value) - c.evaluate(self.value)) % self.p == 0
        if not ok:
            logger.debug("Constraint %d is not satisfied", self.num_constraints - 1)
        return ok

    def column(self, var: Variable) -> int:
        if var.kind == "witness":
            return self.num_instance_variables + var.index
        return var.index

    def to_matrices(self) -> Tuple[List[Dict[int,int]], List[Dict[int,int]], List[Dict[int,int]]]:
        def rows(k):
            return [{self.column(v): coeff for v, coeff in con[k]} for con in self.constraints]
        return rows(0), rows(1), rows(2)

    def full_assignment(self) -> np.ndarray:
        if not self.construct_values:
            raise ValueError("constraint system holds no assignment (setup mode)")
        return np.array(self.instance_assignment + self.witness_assignment, dtype=object)

    def which_is_unsatisfied(self) -> Optional[int]:
        A_rows, B_rows, C_rows = self.to_matrices()
        residual = r1cs_residual_modp(A_rows, B_rows, C_rows, self.full_assignment(), self.p)
        return first_nonzero(residual)

    def is_satisfied(self) -> bool:
        return self.which_is_unsatisfied() is None

    def shape(self) -> Dict[str, object]:
        """Everything about the system except the assigned values."""
        return {
            "num_instance_variables": self.num_instance_variables,
            "num_witness_variables": self.num_witness_variables,
            "num_constraints": self.num_constraints,
            "matrices": tuple(
                tuple(tuple(sorted(row.items())) for row in mat) for mat in self.to_matrices()
            ),
        }
