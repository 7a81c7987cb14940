from __future__ import annotations
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Tuple

from .errors import InvalidFieldElement, MalformedRecord
from .fieldla import BN254_PRIME, parse_field_element, parse_variable_index
from .r1cs_io import Header
from .records import open_records, read_records

logger = logging.getLogger(__name__)

Assignment = Tuple[Tuple[int, int], ...]

def assignment_from_json(obj, line: int, p: int = BN254_PRIME) -> Tuple[int, int]:
    """
    Accept:
      • [index, "value"]
      • {"index": i, "value": "..."} / {"var": i, "coeff": "..."}
    """
    if isinstance(obj, list) and len(obj) == 2:
        idx, val = obj
    elif isinstance(obj, dict) and ("index" in obj or "var" in obj) and ("value" in obj or "coeff" in obj):
        idx = obj["index"] if "index" in obj else obj["var"]
        val = obj["value"] if "value" in obj else obj["coeff"]
    else:
        raise MalformedRecord(line, f"expected an [index, value] pair, got {obj!r}")
    try:
        idx = parse_variable_index(idx)
    except ValueError as e:
        raise MalformedRecord(line, str(e)) from e
    try:
        return idx, parse_field_element(val, p)
    except InvalidFieldElement as e:
        raise InvalidFieldElement(val, line=line) from e

@dataclass(frozen=True)
class WitnessFile:
    header: Header
    witness: Assignment

@dataclass(frozen=True)
class Witness:
    """Assignment split into public-input values and private witness values."""
    input_values: Dict[int, int] = field(default_factory=dict)
    witness_values: Dict[int, int] = field(default_factory=dict)

    @classmethod
    def from_file(cls, f: WitnessFile) -> "Witness":
        return partition_witness(f.witness, f.header.input_variables)

    def public_values(self) -> List[int]:
        return [self.input_values[i] for i in sorted(self.input_values)]

def partition_witness(assignment: Iterable[Tuple[int, int]], input_variables: Iterable[int]) -> Witness:
    inputs = set(input_variables)
    input_values: Dict[int, int] = {}
    witness_values: Dict[int, int] = {}
    for index, value in assignment:
        if index == 0:
            continue
        if index in inputs:
            input_values[index] = value
        else:
            witness_values[index] = value
    return Witness(input_values=input_values, witness_values=witness_values)

def parse_witness(stream, p: int = BN254_PRIME) -> WitnessFile:
    header_obj, rows = read_records(stream)
    header = Header.from_json(header_obj)
    witness = tuple(assignment_from_json(obj, line, p) for line, obj in rows)
    return WitnessFile(header=header, witness=witness)

def load_witness(path: str | Path, p: int = BN254_PRIME) -> WitnessFile:
    with open_records(path) as f:
        wf = parse_witness(f, p)
    logger.debug("Loaded witness from %s: %d assignments", path, len(wf.witness))
    return wf

@dataclass(frozen=True)
class PublicInputs:
    inputs: Assignment

    def values(self) -> List[int]:
        """Values ordered by variable index, independent of file row order."""
        return [v for _, v in sorted(self.inputs, key=lambda iv: iv[0])]

def parse_inputs(stream, p: int = BN254_PRIME) -> PublicInputs:
    _, rows = read_records(stream, header=False)
    out = []
    for i, (line, obj) in enumerate(rows):
        # tolerate a leading witness-style header object
        if i == 0 and isinstance(obj, dict) and "n_variables" in obj:
            continue
        out.append(assignment_from_json(obj, line, p))
    return PublicInputs(inputs=tuple(out))

def load_inputs(path: str | Path, p: int = BN254_PRIME) -> PublicInputs:
    with open_records(path) as f:
        pi = parse_inputs(f, p)
    logger.debug("Loaded %d public inputs from %s", len(pi.inputs), path)
    return pi

