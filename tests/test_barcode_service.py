import random

import pytest

from loyalty_card.services.barcode_service import default_customer_name, generate_barcode, is_valid_barcode


class FixedRandom:
    def __init__(self, value):
        self.value = value

    def randrange(self, stop):
        assert stop == 10_000_000
        return self.value


def test_generated_barcode_has_prefix_and_seven_digits():
    barcode = generate_barcode(random.Random(42))
    assert barcode.startswith("LC")
    assert len(barcode) == 9
    assert barcode[2:].isdigit()
    assert is_valid_barcode(barcode)


@pytest.mark.parametrize(
    "value, expected",
    [(0, "LC0000000"), (1234, "LC0001234"), (9_999_999, "LC9999999")],
)
def test_generated_barcode_is_zero_padded(value, expected):
    assert generate_barcode(FixedRandom(value)) == expected


def test_default_random_source_produces_valid_barcodes():
    assert all(is_valid_barcode(generate_barcode()) for _ in range(200))


@pytest.mark.parametrize("value", ["LC000123", "LC00012345", "lc0001234", "XX0001234", "LC00O1234", "", None])
def test_invalid_barcodes_are_rejected(value):
    assert not is_valid_barcode(value)


def test_default_name_is_derived_from_barcode():
    assert default_customer_name("LC0000001") == "Customer 0000"
    assert default_customer_name("LC1234567") == "Customer 1234"
