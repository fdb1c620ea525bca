"""
CNPJ helpers: cleaning, checksum validation and display mask.
"""
import re

CNPJ_LENGTH = 14

_NON_DIGITS = re.compile(r"\D")
_REPEATED = re.compile(r"^(\d)\1+$")
_MASK = re.compile(r"^(\d{2})(\d{3})(\d{3})(\d{4})(\d{2})$")


def clean_cnpj(raw: str) -> str:
    """Strip the 00.000.000/0000-00 mask and any other non-digit."""
    if not raw:
        return ""
    return _NON_DIGITS.sub("", raw)


def _check_digit(numbers: str) -> int:
    # Weights run 2..9 from the rightmost digit and wrap around.
    total = 0
    weight = 2
    for digit in reversed(numbers):
        total += int(digit) * weight
        weight = 2 if weight == 9 else weight + 1
    remainder = total % 11
    return 0 if remainder < 2 else 11 - remainder


def validate_cnpj(raw: str) -> bool:
    """Validate a CNPJ with the national modulo-11 checksum.

    Non-digit characters are ignored, so masked input is accepted.
    """
    cnpj = clean_cnpj(raw)
    if len(cnpj) != CNPJ_LENGTH or _REPEATED.match(cnpj):
        return False

    first = _check_digit(cnpj[:12])
    if first != int(cnpj[12]):
        return False
    second = _check_digit(cnpj[:13])
    return second == int(cnpj[13])


def format_cnpj(raw: str) -> str:
    """11222333000181 -> 11.222.333/0001-81; anything else is returned cleaned."""
    cnpj = clean_cnpj(raw)
    return _MASK.sub(r"\1.\2.\3/\4-\5", cnpj)
