from __future__ import annotations

from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence

from ..model import ScoredItem


class AverageCalculator(ABC):
    """Calculator interface (Strategy Pattern for grade averages)."""

    @abstractmethod
    def student_average(self, scores: Sequence[ScoredItem]) -> Optional[float]:
        """Percentage for one student, or None when nothing is graded."""

        raise NotImplementedError

    def per_student(self, scores: Iterable[ScoredItem]) -> Dict[int, float]:
        grouped: Dict[int, List[ScoredItem]] = defaultdict(list)
        for s in scores:
            grouped[s.enroll_id].append(s)

        out: Dict[int, float] = {}
        for enroll_id, items in grouped.items():
            avg = self.student_average(items)
            if avg is not None:
                out[enroll_id] = avg
        return out

    def class_average(self, scores: Iterable[ScoredItem]) -> Optional[float]:
        """Mean of the student averages; students without grades do not count."""
        averages = list(self.per_student(scores).values())
        if not averages:
            return None
        return sum(averages) / len(averages)
