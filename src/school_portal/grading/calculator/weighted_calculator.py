from __future__ import annotations

from typing import Optional, Sequence

from ...core.constants import DEFAULT_GRADE_WEIGHT
from ..model import ScoredItem
from .base import AverageCalculator


class WeightedAverageCalculator(AverageCalculator):
    """Weighted mean of points/max_points over the items a student has grades for.

    Ungraded items are not part of the input, so they never count as zero.
    """

    def student_average(self, scores: Sequence[ScoredItem]) -> Optional[float]:
        total_weight = 0.0
        weighted = 0.0
        for s in scores:
            if s.max_points <= 0:
                continue
            weight = s.weight if s.weight and s.weight > 0 else DEFAULT_GRADE_WEIGHT
            weighted += weight * (s.points / s.max_points)
            total_weight += weight

        if total_weight == 0:
            return None
        return weighted / total_weight * 100.0
