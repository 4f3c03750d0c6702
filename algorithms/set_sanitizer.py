import re


class SetSanitizer:
    """Numeric-only handling for the free-text fields of a set entry."""

    _DISALLOWED = re.compile(r"[^0-9.]")
    _NUMBER = re.compile(r"[0-9]+\.?[0-9]*|\.[0-9]+")

    @classmethod
    def sanitize(cls, raw_value: str | None) -> str:
        """Strip every character that is not a digit or ``.``.

        Repeated dots are kept, so ``"1.2.3"`` survives and later parses as 0.
        """
        if not raw_value:
            return ""
        return cls._DISALLOWED.sub("", str(raw_value))

    @classmethod
    def to_number(cls, value: str | None) -> float:
        """Parse ``value`` as a float, returning 0.0 for empty or bad input."""
        if value is None:
            return 0.0
        text = str(value).strip()
        if not cls._NUMBER.fullmatch(text):
            return 0.0
        return float(text)
