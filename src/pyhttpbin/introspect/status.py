"""
=============================================================================
STATUS RESOLVER
=============================================================================

Turns the tail of a /status/... path into one status code.

=============================================================================
SPEC FORMS
=============================================================================

    ┌──────────────────────────┬─────────────────────────────────────────┐
    │ "404"                    │ always 404, no randomness               │
    │ "200:0.9,500:0.1"        │ 200 ninety percent of the time          │
    │ "200:1,500:0"            │ always 200 (zero weight never chosen)   │
    │ "200:0,500:0"            │ always 200 (no mass, first code wins)   │
    │ "200:-1" / "200:inf"     │ single entry, weight ignored → 200      │
    │ "200:1,oops,503:x,500:1" │ malformed segments skipped → 200 / 500  │
    │ "abc" / ""               │ ClientError (400)                       │
    │ "600"                    │ ClientError: outside 100..599           │
    └──────────────────────────┴─────────────────────────────────────────┘

=============================================================================
WEIGHTED SELECTION
=============================================================================

    weights      200:0.9      500:0.1
    cumulative   ├────────────0.9──┤1.0
    draw r ∈ [0, total)
    pick the first positive-weight entry whose cumulative sum is >= r

Negative and NaN weights count as 0. Entries with no mass are skipped, so
they are never picked while a positive-weight entry exists.

=============================================================================
"""

from dataclasses import dataclass
from typing import List, Optional
import math
import re

from ..core.random_source import RandomSource
from ..errors import ClientError
from ..http.status_codes import MIN_STATUS, MAX_STATUS, is_valid_status


_INTEGER = re.compile(r"[+-]?[0-9]+")

INVALID_SPEC_MESSAGE = "Invalid status code specification"
OUT_OF_RANGE_MESSAGE = f"Status code must be between {MIN_STATUS} and {MAX_STATUS}"


@dataclass(frozen=True)
class StatusWeight:
    code: int
    weight: float


def _parse_int(text: str) -> Optional[int]:
    if not _INTEGER.fullmatch(text):
        return None
    return int(text)


def _parse_weight(text: str) -> Optional[float]:
    try:
        return float(text)
    except ValueError:
        return None


def _selection_weight(weight: float) -> float:
    # Negative and NaN weights carry no mass
    if math.isnan(weight) or weight < 0:
        return 0.0
    return weight


def parse_status_spec(spec: str) -> List[StatusWeight]:
    """
    Parse a status spec into (code, weight) pairs.

    Returns:
        An empty list for empty input or when every weighted segment was
        malformed.

    Raises:
        ClientError: The spec has no colon and is not an integer.
    """
    if not spec:
        return []

    if ":" not in spec:
        code = _parse_int(spec)
        if code is None:
            raise ClientError(INVALID_SPEC_MESSAGE)
        return [StatusWeight(code, 1.0)]

    weights = []
    for segment in spec.split(","):
        tokens = segment.strip().split(":")
        if len(tokens) != 2:
            continue

        code = _parse_int(tokens[0].strip())
        weight = _parse_weight(tokens[1].strip())
        if code is None or weight is None:
            continue

        weights.append(StatusWeight(code, weight))

    return weights


class StatusResolver:
    """
    Parses and resolves status specs using a shared RandomSource.

        resolver = StatusResolver(RandomSource(seed=1))
        resolver.resolve("200:0.9,500:0.1")   # 200 or 500
    """

    def __init__(self, rng: Optional[RandomSource] = None):
        self.rng = rng or RandomSource()

    def select(self, weights: List[StatusWeight]) -> int:
        """
        Pick one code.

        A single entry is returned as-is. Otherwise a draw in [0, total)
        walks the cumulative weights and the first positive-weight entry
        whose running sum reaches the draw wins. With no mass at all the
        first code is returned; the last code covers float rounding.
        """
        if not weights:
            raise ClientError(INVALID_SPEC_MESSAGE)

        if len(weights) == 1:
            return weights[0].code

        mass = [_selection_weight(entry.weight) for entry in weights]
        total = sum(mass)

        if total == 0:
            return weights[0].code

        if math.isinf(total):
            for entry, w in zip(weights, mass):
                if math.isinf(w):
                    return entry.code
            # Finite weights that overflow when summed
            largest = max(mass)
            mass = [w / largest for w in mass]
            total = sum(mass)

        draw = self.rng.uniform(total)

        cumulative = 0.0
        for entry, w in zip(weights, mass):
            cumulative += w
            if w > 0 and cumulative >= draw:
                return entry.code

        return weights[-1].code

    def resolve(self, spec: str) -> int:
        """
        Parse, select and range-check.

        Raises:
            ClientError: Bad spec, nothing usable, or code outside 100..599.
        """
        weights = parse_status_spec(spec)
        if not weights:
            raise ClientError(INVALID_SPEC_MESSAGE)

        code = self.select(weights)
        if not is_valid_status(code):
            raise ClientError(OUT_OF_RANGE_MESSAGE)
        return code
