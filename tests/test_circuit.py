import io
import json
from pathlib import Path

import pytest

from r1csbridge.core.errors import InconsistentVariableCount, MissingWitnessValue, UnknownVariableIndex
from r1csbridge.core.fieldla import BN254_PRIME
from r1csbridge.core.r1cs_io import R1CS, R1CSFile, Constraint, Header, Term, load_r1cs, parse_r1cs
from r1csbridge.core.witness_io import Witness, load_witness, partition_witness
from r1csbridge.synth.circuit import Circuit, synthesize
from r1csbridge.synth.constraint_system import ONE, ConstraintSystem, LinearCombination, Variable

EXAMPLES = Path(__file__).resolve().parent.parent / "circuits" / "examples"

def mul_circuit():
    # x1 * x2 = x3, with x3 public
    h = {"extension_degree": 1, "field_characteristic": str(BN254_PRIME), "input_variables": [3],
         "n_constraints": 1, "n_variables": 4, "output_variables": [3]}
    row = {"A": [["1", 1]], "B": [["1", 2]], "C": [["1", 3]]}
    data = (json.dumps(h) + "\n" + json.dumps(row) + "\n").encode()
    return R1CS.from_file(parse_r1cs(io.BytesIO(data)))

class RecordingSystem(ConstraintSystem):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.results = []

    def enforce_constraint(self, a, b, c):
        ok = super().enforce_constraint(a, b, c)
        self.results.append(ok)
        return ok

def test_satisfying_witness_is_accepted():
    r = mul_circuit()
    w = Witness(input_values={3: 15}, witness_values={1: 3, 2: 5})
    cs = RecordingSystem()
    synthesize(r, w, cs=cs)
    assert cs.results == [True]
    assert cs.is_satisfied()

def test_non_satisfying_witness_is_reported():
    r = mul_circuit()
    w = Witness(input_values={3: 16}, witness_values={1: 3, 2: 5})
    cs = RecordingSystem()
    synthesize(r, w, cs=cs)
    assert cs.results == [False]
    assert not cs.is_satisfied()
    assert cs.which_is_unsatisfied() == 0

def test_setup_and_prove_are_structurally_identical():
    r = load_r1cs(EXAMPLES / "mul_add.r1cs")
    wf = load_witness(EXAMPLES / "mul_add.wtns")
    setup = synthesize(r)
    prove = synthesize(r, partition_witness(wf.witness, r.input_variables))
    assert not setup.construct_values
    assert prove.is_satisfied()
    assert setup.shape() == prove.shape()

def test_allocation_order_and_column_layout():
    r = load_r1cs(EXAMPLES / "mul_add.r1cs")
    cs = synthesize(r)
    # columns: 0 = one, 1..2 = inputs x1, x4, 3..4 = witness x2, x3
    assert cs.num_instance_variables == 3
    assert cs.num_witness_variables == 2
    A, B, C = cs.to_matrices()
    assert A == [{1: 1}, {4: 1, 0: 1}]
    assert B == [{3: 1}, {0: 1}]
    assert C == [{4: 1}, {2: 1}]

def test_placeholder_values_without_witness():
    cs = synthesize(mul_circuit(), cs=ConstraintSystem())
    assert cs.instance_assignment == [1, 1]
    assert cs.witness_assignment == [1, 1]

def test_setup_mode_holds_no_values():
    cs = synthesize(mul_circuit())
    with pytest.raises(ValueError):
        cs.value(Variable("witness", 0))
    with pytest.raises(ValueError):
        cs.is_satisfied()

def test_missing_witness_value():
    w = Witness(input_values={3: 15}, witness_values={1: 3})
    with pytest.raises(MissingWitnessValue) as ei:
        synthesize(mul_circuit(), w)
    assert ei.value.index == 2

def test_missing_input_value():
    w = Witness(input_values={}, witness_values={1: 3, 2: 5})
    with pytest.raises(MissingWitnessValue) as ei:
        synthesize(mul_circuit(), w)
    assert ei.value.index == 3

def test_strict_rejects_undeclared_assignments():
    w = Witness(input_values={3: 15}, witness_values={1: 3, 2: 5, 9: 1})
    with pytest.raises(InconsistentVariableCount):
        synthesize(mul_circuit(), w)
    cs = synthesize(mul_circuit(), w, strict=False)
    assert cs.is_satisfied()

def test_duplicate_indices_accumulate():
    # (2*x1 + 1*x1) * 1 = x2
    h = Header(1, BN254_PRIME, (), 1, 3, ())
    con = Constraint(a=(Term(2, 1), Term(1, 1)), b=(Term(1, 0),), c=(Term(1, 2),))
    r = R1CS.from_file(R1CSFile(header=h, constraints=(con,)))
    cs = synthesize(r, Witness(witness_values={1: 5, 2: 15}))
    A, _, _ = cs.to_matrices()
    assert A == [{1: 3}]
    assert cs.is_satisfied()

def test_unknown_index_aborts_synthesis():
    h = Header(1, BN254_PRIME, (), 1, 2, ())
    # bypass loader validation
    r = R1CS(input_variables=(), witness_variables=(1,),
             constraints=(Constraint(a=(Term(1, 7),), b=(), c=()),), header=h)
    with pytest.raises(UnknownVariableIndex) as ei:
        synthesize(r)
    assert ei.value.index == 7

def test_from_paths_partitions_with_descriptor_inputs(tmp_path):
    # witness header declares no inputs; the descriptor's input set still governs
    lines = (EXAMPLES / "mul_add.wtns").read_text().splitlines()
    h = json.loads(lines[0])
    h["input_variables"] = []
    wpath = tmp_path / "w.wtns"
    wpath.write_text("\n".join([json.dumps(h)] + lines[1:]) + "\n")
    c = Circuit.from_paths(EXAMPLES / "mul_add.r1cs", wpath)
    assert c.witness.input_values == {1: 3, 4: 16}
    cs = c.generate_constraints(ConstraintSystem())
    assert cs.is_satisfied()

class MinimalBuilder:
    """Any object with the builder capability works, not only ConstraintSystem."""
    def __init__(self):
        self.one = ONE
        self.public, self.private, self.rows = [], [], []

    def new_lc(self):
        return LinearCombination()

    def new_input_variable(self, value):
        self.public.append(value)
        return Variable("instance", len(self.public))

    def new_witness_variable(self, value):
        self.private.append(value)
        return Variable("witness", len(self.private) - 1)

    def enforce_constraint(self, a, b, c):
        self.rows.append((a, b, c))
        return True

def test_custom_builder():
    w = Witness(input_values={3: 15}, witness_values={1: 3, 2: 5})
    b = synthesize(mul_circuit(), w, cs=MinimalBuilder())
    assert b.public == [15]
    assert b.private == [3, 5]
    assert len(b.rows) == 1
