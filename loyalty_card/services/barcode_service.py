import random
import re

BARCODE_PREFIX = "LC"
BARCODE_DIGITS = 7

_BARCODE_RE = re.compile(rf"^{BARCODE_PREFIX}\d{{{BARCODE_DIGITS}}}$")

_system_random = random.SystemRandom()


def generate_barcode(rng: random.Random | None = None) -> str:
    """
    Draw a new customer barcode: ``LC`` followed by 7 zero-padded digits.

    Uniqueness is not checked here; the registration flow relies on the
    unique constraint and regenerates on collision.
    """
    rng = rng or _system_random
    number = rng.randrange(10 ** BARCODE_DIGITS)
    return f"{BARCODE_PREFIX}{number:0{BARCODE_DIGITS}d}"


def is_valid_barcode(value: str | None) -> bool:
    return bool(value) and _BARCODE_RE.match(value) is not None


def default_customer_name(barcode: str) -> str:
    return f"Customer {barcode[2:6]}"
