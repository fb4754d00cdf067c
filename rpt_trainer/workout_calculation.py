import math
from collections.abc import Sequence

# Used when the configured drop table is shorter than the set being computed
FALLBACK_RPT_PERCENTAGE_DROPS: tuple[float, ...] = (0.0, 0.10, 0.15, 0.20)
FALLBACK_DROP_PERCENTAGE = 0.10


def calculate_rpt_weights(first_set_weight: float, percentage_drops: Sequence[float]) -> list[float]:
    """Weights for each set of a reverse pyramid, unrounded.

    ``percentage_drops[0]`` is conventionally ``0.0`` so the first weight is
    ``first_set_weight`` itself.
    """
    return [first_set_weight * (1.0 - drop) for drop in percentage_drops]


def round_to_nearest_increment(value: float, increment: int = 5) -> int:
    """Round ``value`` to the nearest multiple of ``increment``, halves away from zero."""
    if increment <= 0:
        raise ValueError("increment must be positive")
    steps = math.floor(abs(value) / increment + 0.5)
    return int(math.copysign(steps * increment, value))


def drop_percentage_for(index: int, percentage_drops: Sequence[float] | None) -> float:
    if percentage_drops is not None and 0 <= index < len(percentage_drops):
        return percentage_drops[index]
    if 0 <= index < len(FALLBACK_RPT_PERCENTAGE_DROPS):
        return FALLBACK_RPT_PERCENTAGE_DROPS[index]
    return FALLBACK_DROP_PERCENTAGE


def format_rpt_example(
    first_set_weight: float,
    percentage_drops: Sequence[float],
    unit: str = "lb",
    increment: int = 5,
) -> str:
    # The first set (100%) is implied and left out of the chain
    weights = calculate_rpt_weights(first_set_weight, percentage_drops[1:])
    chain = " → ".join(str(round_to_nearest_increment(weight, increment)) for weight in weights)
    return f"{chain} {unit}" if chain else unit


def format_weight(weight: float, unit: str = "lb", use_unit: bool = True) -> str:
    if isinstance(weight, int):
        formatted = str(weight)
    else:
        formatted = f"{weight:.1f}"
    return f"{formatted} {unit}" if use_unit else formatted


def format_volume(volume: float, unit: str = "lb") -> str:
    if volume > 1000:
        return f"{volume / 1000:.1f}k {unit}"
    return f"{volume:.1f} {unit}"


def format_duration(seconds: float) -> str:
    minutes = int(seconds // 60)
    remainder = int(seconds % 60)
    return f"{minutes}:{remainder:02d}"
