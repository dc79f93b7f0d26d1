"""Brazilian CNPJ (company tax id) helpers."""
from __future__ import annotations

import re
from typing import Optional

_NON_DIGITS = re.compile(r"\D")
_FIRST_WEIGHTS = (5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2)
_SECOND_WEIGHTS = (6,) + _FIRST_WEIGHTS


def strip_cnpj(value: str) -> str:
    """Return only the digits of ``value``."""

    return _NON_DIGITS.sub("", value or "")


def _check_digit(digits: str, weights: tuple[int, ...]) -> int:
    total = sum(int(digit) * weight for digit, weight in zip(digits, weights))
    remainder = total % 11
    return 0 if remainder < 2 else 11 - remainder


def is_valid_cnpj(value: str) -> bool:
    """Validate a CNPJ with the official two check-digit algorithm.

    Punctuation is ignored. Sequences of a single repeated digit (for example
    ``11.111.111/1111-11``) pass the arithmetic but are not issued, so they are
    rejected.
    """

    digits = strip_cnpj(value)
    if len(digits) != 14:
        return False
    if digits == digits[0] * 14:
        return False

    if int(digits[12]) != _check_digit(digits[:12], _FIRST_WEIGHTS):
        return False
    return int(digits[13]) == _check_digit(digits[:13], _SECOND_WEIGHTS)


def format_cnpj(value: str) -> Optional[str]:
    """Format 14 digits as ``NN.NNN.NNN/NNNN-NN``; ``None`` for anything else."""

    digits = strip_cnpj(value)
    if len(digits) != 14:
        return None
    return f"{digits[:2]}.{digits[2:5]}.{digits[5:8]}/{digits[8:12]}-{digits[12:]}"


__all__ = ["format_cnpj", "is_valid_cnpj", "strip_cnpj"]
