"""Pure SM-2 arithmetic, independent of persistence."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from progression.core.exceptions import InvalidInputError


@dataclass(frozen=True)
class SM2State:
    interval: int = 0
    repetitions: int = 0
    stability_factor: float = 2.5


@dataclass(frozen=True)
class SM2Result:
    interval: int
    repetitions: int
    stability_factor: float
    next_review_at: datetime


class SM2Calculator:
    """SuperMemo-2 with a 0..5 quality scale; 3 and above counts as a pass."""

    DEFAULT_STABILITY_FACTOR = 2.5
    MIN_STABILITY_FACTOR = 1.3
    PASSING_QUALITY = 3
    MIN_QUALITY = 0
    MAX_QUALITY = 5

    # Learner-facing rating buttons mapped onto the quality scale.
    RATINGS = {"again": 0, "hard": 3, "good": 4, "easy": 5}

    @classmethod
    def validate_quality(cls, quality) -> int:
        if isinstance(quality, bool) or not isinstance(quality, int):
            raise InvalidInputError("invalid_quality")
        if not cls.MIN_QUALITY <= quality <= cls.MAX_QUALITY:
            raise InvalidInputError("invalid_quality")
        return quality

    @classmethod
    def quality_from_rating(cls, rating: str) -> int:
        try:
            return cls.RATINGS[(rating or "").strip().lower()]
        except KeyError as exc:
            raise InvalidInputError("invalid_rating") from exc

    @classmethod
    def initial_state(cls) -> SM2State:
        return SM2State(interval=0, repetitions=0, stability_factor=cls.DEFAULT_STABILITY_FACTOR)

    @classmethod
    def next_stability_factor(cls, stability_factor: float, quality: int) -> float:
        penalty = 5 - quality
        updated = stability_factor + (0.1 - penalty * (0.08 + penalty * 0.02))
        return max(cls.MIN_STABILITY_FACTOR, updated)

    @classmethod
    def calculate(cls, state: SM2State, quality: int, now: datetime) -> SM2Result:
        """Return the schedule following a review of *quality* at *now*."""
        quality = cls.validate_quality(quality)

        if quality >= cls.PASSING_QUALITY:
            repetitions = state.repetitions + 1
            if repetitions == 1:
                interval = 1
            elif repetitions == 2:
                interval = 6
            else:
                # The interval grows with the factor in force before this review.
                interval = int(math.floor(state.interval * state.stability_factor + 0.5))
            stability_factor = cls.next_stability_factor(state.stability_factor, quality)
        else:
            repetitions = 0
            interval = 1
            stability_factor = state.stability_factor

        return SM2Result(
            interval=interval,
            repetitions=repetitions,
            stability_factor=stability_factor,
            next_review_at=now + timedelta(days=interval),
        )


__all__ = ["SM2Calculator", "SM2Result", "SM2State"]
