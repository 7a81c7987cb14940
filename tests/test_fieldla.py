import pytest

from r1csbridge.core.errors import InvalidFieldElement, MalformedHeader
from r1csbridge.core.fieldla import (
    BN254_PRIME, modp, parse_characteristic, parse_field_element, parse_variable_index,
)

P = BN254_PRIME

def test_parse_small_values():
    assert parse_field_element("0") == 0
    assert parse_field_element("15") == 15

def test_values_at_or_above_modulus_are_reduced():
    assert parse_field_element(str(P)) == 0
    assert parse_field_element(str(P + 5)) == 5
    assert parse_field_element(str(3 * P + 7)) == 7

def test_negative_values_wrap():
    assert parse_field_element("-1") == P - 1
    assert parse_field_element("-1", 7) == 6

@pytest.mark.parametrize("bad", ["", " 1", "1 ", "+1", "1_000", "0x10", "1.5", "abc", 12, None])
def test_invalid_field_elements(bad):
    with pytest.raises(InvalidFieldElement):
        parse_field_element(bad)

def test_parse_characteristic():
    assert parse_characteristic(str(P)) == P
    for bad in ("-3", "abc", "", P, None):
        with pytest.raises(MalformedHeader):
            parse_characteristic(bad)

def test_variable_index():
    assert parse_variable_index(3) == 3
    for bad in (True, -1, "3", 1.0):
        with pytest.raises(ValueError):
            parse_variable_index(bad)

def test_modp():
    assert modp(-1, 7) == 6
    assert modp(15, 7) == 1
