# Numeric helpers shared by the generator (coercing model output) and the
# local grading fallback used when the feedback model is unavailable.

from __future__ import annotations

import math
import re
from typing import Any

from sympy import nan, oo, zoo
from sympy.parsing.sympy_parser import (
    convert_xor,
    parse_expr,
    standard_transformations,
)

LEN_LIMIT = 100
_NOT_A_NUMBER_MSG = "Not a number."
_NON_FINITE_MSG = "Number is not finite (e.g., division by zero)."
_ALLOWED_RE = re.compile(r"^[0-9+\-*/^().\s]{1,100}$")

# no implicit multiplication: "3.5.1" or "1 250" must not become a product
TRANSFORMS = standard_transformations + (convert_xor,)

_THOUSANDS_RE = re.compile(r"^[+-]?\d{1,3}(,\d{3})+(\.\d+)?$")
_SPLIT_NUMBER_RE = re.compile(r"[\d.]\s+[\d.]|\d*\.\d*\.")


def _assert_finite(val: Any) -> None:
    if val in (oo, -oo, zoo, nan):
        raise ValueError(_NON_FINITE_MSG)
    if getattr(val, "is_finite", None) is False:
        raise ValueError(_NON_FINITE_MSG)


def to_number(value: Any) -> float:
    """
    Coerce a model-supplied answer into a finite float.

    Accepts ints/floats and numeric strings, including simple expressions
    such as "5/6" or "3^2" that models occasionally return instead of a
    bare number. Booleans and anything non-numeric raise ValueError.
    """
    if isinstance(value, bool):
        raise ValueError(_NOT_A_NUMBER_MSG)
    if isinstance(value, (int, float)):
        f = float(value)
        if not math.isfinite(f):
            raise ValueError(_NON_FINITE_MSG)
        return f
    if not isinstance(value, str) or not value.strip():
        raise ValueError(_NOT_A_NUMBER_MSG)

    s = value.strip()
    # thousands separators ("1,250") are common in word problems; other commas are ambiguous
    if "," in s:
        if _THOUSANDS_RE.fullmatch(s) is None:
            raise ValueError(_NOT_A_NUMBER_MSG)
        s = s.replace(",", "")

    # Fast path: plain number without going through sympy.
    f = None
    if "_" not in s:
        try:
            f = float(s)
        except ValueError:
            f = None
    if f is not None:
        if not math.isfinite(f):
            raise ValueError(_NON_FINITE_MSG)
        return f

    if len(s) > LEN_LIMIT or _ALLOWED_RE.fullmatch(s) is None:
        raise ValueError(_NOT_A_NUMBER_MSG)
    if _SPLIT_NUMBER_RE.search(s):
        raise ValueError(_NOT_A_NUMBER_MSG)
    try:
        sym = parse_expr(s, transformations=TRANSFORMS, evaluate=True)
    except Exception as e:
        raise ValueError(_NOT_A_NUMBER_MSG) from e
    _assert_finite(sym)
    try:
        f = float(sym.evalf())
    except (TypeError, ValueError) as e:
        raise ValueError(_NOT_A_NUMBER_MSG) from e
    if not math.isfinite(f):
        raise ValueError(_NON_FINITE_MSG)
    return f


def num_to_clean_str(x: float) -> str:
    if math.isfinite(x) and x == round(x):
        return str(int(round(x)))
    return str(x)


def answers_match(user_answer: float, correct_answer: float) -> bool:
    # exact equality, no tolerance
    return float(user_answer) == float(correct_answer)


def local_feedback(user_answer: float, correct_answer: float) -> tuple[bool, str]:
    """Judge an answer without the feedback model."""
    if answers_match(user_answer, correct_answer):
        return True, "Your answer is correct!"
    return (
        False,
        f"Your answer is incorrect. The correct answer is {num_to_clean_str(correct_answer)}.",
    )
