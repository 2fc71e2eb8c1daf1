"""
Byte quantities parsed from human-readable size strings ("512M", "2G", "1.5GiB").
"""

import re
from dataclasses import dataclass, field

_SIZE_PATTERN = re.compile(r"^(?P<value>\d+(?:\.\d+)?)(?:(?P<unit>[kmg])(?:i?b)?|b)?$", re.IGNORECASE)

_UNIT_FACTORS = {
    None: 1,
    "k": 1024,
    "m": 1024**2,
    "g": 1024**3,
}


@dataclass(frozen=True, order=True)
class MemorySize:
    """
    An amount of memory or disk in bytes.

    Comparisons only look at the byte count; the text the size was parsed
    from is kept so it can be shown back to the user as given.
    A zero size means "not specified".
    """

    bytes: int = 0
    text: str = field(default="", compare=False)

    @classmethod
    def parse(cls, value: str | int) -> "MemorySize":
        """
        Parse a size string.

        Accepts a bare number of bytes or a number followed by K, M or G
        (optionally suffixed with B or iB). Units are binary. Fractions are
        only allowed together with a unit and are truncated to whole bytes.

        Raises:
            ValueError: If the value is not a valid size
        """
        if isinstance(value, bool):
            raise ValueError(f"Invalid memory size: {value!r}")
        if isinstance(value, int):
            if value < 0:
                raise ValueError(f"Invalid memory size: {value!r}")
            return cls(bytes=value, text=str(value))
        if not isinstance(value, str):
            raise ValueError(f"Invalid memory size: {value!r}")

        text = value.strip()
        match = _SIZE_PATTERN.match(text)
        if not match:
            raise ValueError(f"Invalid memory size: {value!r}")

        number = match.group("value")
        unit = match.group("unit")
        unit = unit.lower() if unit else None

        if "." in number and unit is None:
            raise ValueError(f"Invalid memory size: {value!r}")

        factor = _UNIT_FACTORS[unit]
        if "." in number:
            whole, frac = number.split(".")
            # Integer arithmetic avoids float rounding on large sizes
            size = int(whole) * factor + int(frac) * factor // 10 ** len(frac)
        else:
            size = int(number) * factor

        return cls(bytes=size, text=text)

    @property
    def is_zero(self) -> bool:
        return self.bytes == 0

    def human_readable(self) -> str:
        """Format as the largest whole binary unit, e.g. 2147483648 -> '2.0GiB'."""
        for unit, factor in (("GiB", 1024**3), ("MiB", 1024**2), ("KiB", 1024)):
            if self.bytes >= factor:
                return f"{self.bytes / factor:.1f}{unit}"
        return f"{self.bytes}B"

    def __str__(self) -> str:
        return self.text or self.human_readable()
