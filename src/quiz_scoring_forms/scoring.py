"""Percentage scoring and result band lookup."""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Sequence

from .definition import QuizDefinition, ResultBandDefinition
from .errors import ScoringConfigurationError
from .models import ScoreResult

logger = logging.getLogger(__name__)


def resolve_max_answer_value(
    definition: QuizDefinition, default: Optional[float] = None
) -> float:
    """Return the per-question maximum score configured for a quiz.

    The quiz's own ``max_answer_value`` wins over ``default``. The value must
    be positive and at least as large as every answer option's value.
    """
    maximum = definition.max_answer_value
    if maximum is None:
        maximum = default
    if maximum is None:
        raise ScoringConfigurationError(
            "No maximum answer value configured for scoring."
        )
    if maximum <= 0:
        raise ScoringConfigurationError(
            f"Maximum answer value must be positive, got {maximum}."
        )

    for option in definition.answer_options:
        try:
            value = option.numeric_value
        except ValueError:
            raise ScoringConfigurationError(
                f"Answer option {option.id!r} has non-numeric value {option.value!r}."
            ) from None
        if value > maximum:
            raise ScoringConfigurationError(
                f"Answer option {option.id!r} value {value} exceeds the maximum {maximum}."
            )

    return float(maximum)


def percentage_of(total: float, max_total: float) -> int:
    """Round 100 * total / max_total half-up to an integer."""
    ratio = Decimal(str(total)) * 100 / Decimal(str(max_total))
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def match_band(
    percentage: float, result_bands: Iterable[ResultBandDefinition]
) -> Optional[ResultBandDefinition]:
    """First band, in declaration order, whose range contains ``percentage``."""
    for band in result_bands:
        if band.min_percentage <= percentage <= band.max_percentage:
            return band
    return None


def resolve(
    answer_values: Sequence[float],
    result_bands: Sequence[ResultBandDefinition],
    max_answer_value: float,
) -> ScoreResult:
    """Score a set of answers and pick the matching result band."""
    if max_answer_value is None or max_answer_value <= 0:
        raise ScoringConfigurationError(
            f"Maximum answer value must be positive, got {max_answer_value}."
        )
    if not answer_values:
        raise ScoringConfigurationError("Cannot score a quiz without answers.")

    total = float(sum(answer_values))
    max_total = float(max_answer_value) * len(answer_values)
    percentage = percentage_of(total, max_total)

    band = match_band(percentage, result_bands)
    if band is None:
        logger.error("No result band covers %d%%", percentage)
        raise ScoringConfigurationError(f"No result band matches {percentage}%.")

    return ScoreResult(
        percentage=percentage,
        total=total,
        max_total=max_total,
        band_id=band.id,
        band_title=band.title,
        band_description=band.description,
    )
