"""
Design (utils.py)
- Purpose: Reusable helpers: cost parsing and rounding, Express surcharge (and its inverse),
           the cost keystroke filter, and display casing for names and problems.
- Inputs: Raw strings / numbers.
- Outputs: Decimal values, bools, formatted strings.
- Side effects: None.
- Thread-safety: Stateless; safe to call from any thread.
"""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from .config import COST_INPUT_PATTERN, COST_PLACES, EXPRESS_SURCHARGE

_COST_INPUT_RE = re.compile(COST_INPUT_PATTERN)


def quantize_cost(value) -> Decimal:
    """
    Purpose: Round a money value to 2 places (half-up).
    Inputs: Decimal, int, float or numeric string.
    Outputs: Decimal with exactly two fractional digits.
    """
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    result = value.quantize(COST_PLACES, rounding=ROUND_HALF_UP)
    # "-0" rounds to -0.00; store it unsigned
    return abs(result) if result.is_zero() else result


def parse_cost(raw) -> Decimal | None:
    """
    Purpose: Parse user-entered cost text.
    Inputs: raw (str or number; surrounding whitespace and a leading '$' are ignored).
    Outputs: Decimal (unrounded) or None if the text is not a finite number.
    """
    if isinstance(raw, Decimal):
        value = raw
    else:
        text = str(raw if raw is not None else "").strip()
        if text.startswith("$"):
            text = text[1:].strip()
        if not text:
            return None
        try:
            value = Decimal(text)
        except InvalidOperation:
            return None
    if not value.is_finite():
        return None
    return value


def apply_surcharge(base_cost, express: bool) -> Decimal:
    """
    Purpose: Stored cost for a job: base * 1.15 for Express, base for Regular, both rounded.
    """
    base = base_cost if isinstance(base_cost, Decimal) else Decimal(str(base_cost))
    if express:
        return quantize_cost(base * EXPRESS_SURCHARGE)
    return quantize_cost(base)


def remove_surcharge(stored_cost, express: bool) -> Decimal:
    """
    Purpose: Inverse of apply_surcharge, used when a job is loaded for editing so the
             surcharge is re-applied once instead of compounding.
    """
    stored = stored_cost if isinstance(stored_cost, Decimal) else Decimal(str(stored_cost))
    if express:
        return quantize_cost(stored / EXPRESS_SURCHARGE)
    return quantize_cost(stored)


def is_cost_keystroke_allowed(proposed: str) -> bool:
    """
    Purpose: Keystroke filter for the cost entry (digits, at most two decimals, no sign).
    Inputs: proposed = full entry text after the keystroke.
    Outputs: True if the edit should be accepted. An empty entry is allowed so it can be cleared.
    """
    if proposed == "":
        return True
    return bool(_COST_INPUT_RE.match(proposed))


def title_case(text: str) -> str:
    """First letter of each word upper, the rest lower; ALL CAPS words (acronyms) are kept."""
    if not text:
        return ""

    def word(m):
        w = m.group(0)
        return w if w.isupper() else w[0].upper() + w[1:].lower()

    return re.sub(r"\S+", word, text)


def sentence_case(text: str) -> str:
    """First letter upper, the rest lower."""
    s = (text or "").strip()
    if not s:
        return ""
    return s[0].upper() + s[1:].lower()
