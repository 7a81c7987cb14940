from __future__ import annotations
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Sequence

from ..core.errors import InconsistentVariableCount, MissingWitnessValue, UnknownVariableIndex
from ..core.fieldla import BN254_PRIME
from ..core.r1cs_io import R1CS, Term, load_r1cs
from ..core.witness_io import Witness, load_witness, partition_witness
from .constraint_system import ConstraintBuilder, ConstraintSystem, LinearCombination, Variable

logger = logging.getLogger(__name__)

# Value given to every variable when synthesizing without a witness (key
# generation). It only has to be a field element; it is never proven.
PLACEHOLDER = 1

@dataclass
class Circuit:
    """
    An R1CS descriptor plus, optionally, the assignment to prove.

    witness=None is setup mode, anything else is proving mode. Both go
    through generate_constraints so the resulting systems differ only in
    their assigned values.
    """
    r1cs: R1CS
    witness: Optional[Witness] = None
    strict: bool = True

    @classmethod
    def from_paths(cls, r1cs_path: str | Path, witness_path: str | Path | None = None,
                   p: int = BN254_PRIME, strict: bool = True) -> "Circuit":
        r1cs = load_r1cs(r1cs_path, p)
        witness = None
        if witness_path is not None:
            wf = load_witness(witness_path, p)
            # partition against the descriptor's inputs, not the witness header's
            witness = partition_witness(wf.witness, r1cs.input_variables)
        return cls(r1cs=r1cs, witness=witness, strict=strict)

    def _check_witness_indices(self):
        w = self.witness
        extra_inputs = set(w.input_values) - set(self.r1cs.input_variables)
        extra_witness = set(w.witness_values) - set(self.r1cs.witness_variables)
        if extra_inputs or extra_witness:
            raise InconsistentVariableCount(
                "witness assigns variables the circuit does not declare: "
                f"inputs {sorted(extra_inputs)}, witness {sorted(extra_witness)}")

    def _allocate(self, indices: Sequence[int], values: Optional[Dict[int, int]], new_var) -> Dict[int, Variable]:
        mapping: Dict[int, Variable] = {}
        for v in indices:
            if values is None:
                value = PLACEHOLDER
            else:
                try:
                    value = values[v]
                except KeyError:
                    raise MissingWitnessValue(v) from None
            mapping[v] = new_var(value)
        return mapping

    def generate_constraints(self, cs: ConstraintBuilder) -> ConstraintBuilder:
        w = self.witness
        if w is not None and self.strict:
            self._check_witness_indices()

        lookup: Dict[int, Variable] = {0: cs.one}
        lookup.update(self._allocate(self.r1cs.input_variables,
                                     None if w is None else w.input_values, cs.new_input_variable))
        lookup.update(self._allocate(self.r1cs.witness_variables,
                                     None if w is None else w.witness_values, cs.new_witness_variable))

        def make_lc(terms: Sequence[Term]) -> LinearCombination:
            lc = cs.new_lc()
            for t in terms:
                var = lookup.get(t.var)
                if var is None:
                    raise UnknownVariableIndex(t.var)
                lc.add_term(t.coeff, var)
            return lc

        unsatisfied = 0
        for con in self.r1cs.constraints:
            if not cs.enforce_constraint(make_lc(con.a), make_lc(con.b), make_lc(con.c)):
                unsatisfied += 1

        logger.debug("Synthesized %d public, %d private variables and %d constraints (%s mode)",
                     len(self.r1cs.input_variables), len(self.r1cs.witness_variables),
                     len(self.r1cs.constraints), "setup" if w is None else "prove")
        if unsatisfied:
            logger.info("%d constraints are not satisfied by the witness", unsatisfied)
        return cs

def synthesize(r1cs: R1CS, witness: Optional[Witness] = None,
               cs: Optional[ConstraintBuilder] = None, strict: bool = True,
               p: int = BN254_PRIME) -> ConstraintBuilder:
    if cs is None:
        cs = ConstraintSystem(p, construct_values=witness is not None)
    return Circuit(r1cs=r1cs, witness=witness, strict=strict).generate_constraints(cs)
