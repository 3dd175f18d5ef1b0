"""
Error-rate and coverage parameter sets.

Each rate category accepts a comma-separated list of values so that a single
invocation can sweep several settings (e.g. ``-E 0,0.01,0.02``). An empty
list falls back to the category default.

Author: BreakSim Development Team
License: MIT
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, Optional, Tuple, Union

from ..errors import ParameterError


DEFAULT_SNV_RATE = 0.01
DEFAULT_DEL_RATE = 0.05
DEFAULT_INS_RATE = 0.05
DEFAULT_COVERAGE = 10.0


class RateCategory(Enum):
    """Kinds of numeric list parameters."""
    SNV = "SNV"
    DELETION = "Del"
    INSERTION = "Ins"
    COVERAGE = "Coverages"
    FRACTION = "Fractions"

    @property
    def default(self) -> Optional[float]:
        return _CATEGORY_DEFAULTS.get(self)

    @property
    def is_rate(self) -> bool:
        """Rates and fractions live in [0, 1]; coverage is any positive number."""
        return self is not RateCategory.COVERAGE


_CATEGORY_DEFAULTS = {
    RateCategory.SNV: DEFAULT_SNV_RATE,
    RateCategory.DELETION: DEFAULT_DEL_RATE,
    RateCategory.INSERTION: DEFAULT_INS_RATE,
    RateCategory.COVERAGE: DEFAULT_COVERAGE,
}


def parse_number_list(text: Optional[str]) -> Tuple[float, ...]:
    """
    Parse a comma-separated list of numbers.

    Args:
        text: Input such as "0.01,0.05" (None or "" gives an empty tuple)

    Returns:
        Parsed values in input order

    Raises:
        ParameterError: If any element is not a number
    """
    if not text:
        return ()

    values = []
    for token in str(text).split(','):
        token = token.strip()
        if not token:
            continue
        try:
            values.append(float(token))
        except ValueError:
            raise ParameterError(f"Could not convert {token} to number")
    return tuple(values)


@dataclass(frozen=True)
class ErrorRateSet:
    """
    Ordered, validated values for one rate category.

    Attributes:
        category: Which parameter these values belong to
        values: Values in input order (never empty once constructed via parse)
    """
    category: RateCategory
    values: Tuple[float, ...]

    def __post_init__(self):
        for value in self.values:
            if self.category.is_rate and not 0.0 <= value <= 1.0:
                raise ParameterError(
                    f"{self.category.value} value must be between 0 and 1, got {value}"
                )
            if not self.category.is_rate and value <= 0:
                raise ParameterError(
                    f"{self.category.value} value must be positive, got {value}"
                )

    @classmethod
    def parse(cls, text: Union[str, Iterable[float], None], category: RateCategory) -> 'ErrorRateSet':
        """
        Build a set from a comma-separated string or an iterable of numbers.

        Empty input falls back to the category default. Fractions have no
        default and stay empty.
        """
        if text is None or isinstance(text, str):
            values = parse_number_list(text)
        else:
            values = tuple(float(v) for v in text)

        if not values and category.default is not None:
            values = (category.default,)

        return cls(category=category, values=values)

    @property
    def first(self) -> float:
        """First value, used by single-setting modes."""
        if not self.values:
            raise ParameterError(f"No {self.category.value} values given")
        return self.values[0]

    def describe(self) -> str:
        """Log line in the form ``"        SNV: 0.01, 0.05"``."""
        return f"        {self.category.value}: " + ', '.join(f"{v:g}" for v in self.values)

    def __iter__(self) -> Iterator[float]:
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)


__all__ = [
    'DEFAULT_SNV_RATE',
    'DEFAULT_DEL_RATE',
    'DEFAULT_INS_RATE',
    'DEFAULT_COVERAGE',
    'RateCategory',
    'ErrorRateSet',
    'parse_number_list',
]
