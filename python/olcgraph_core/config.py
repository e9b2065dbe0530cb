"""Parameters of the overlap search."""

from __future__ import annotations

import math
from dataclasses import dataclass

LN10 = math.log(10)
LN1000000 = math.log(1_000_000)


@dataclass(frozen=True)
class OverlapConfiguration:
    """Seed sampling and pair classification thresholds.

    Parameters
    ----------
    seed_length
        Length ``L`` of the k-mers used as exact-match probes.
    seed_step
        Distance ``D`` between consecutive seeds of a read.
    max_diagonal_shift
        Tolerance ``Δ``: hits whose diagonals differ by less than this are
        merged into the same candidate alignment.
    min_cover_rate
        Fraction of the expected seeds that makes a single-hit cluster count.
    border_rate
        Fraction of a read's length near its ends within which an alignment
        must start or end.
    min_hits
        Number of hits that makes a cluster count regardless of its rate.
    """

    seed_length: int = 15
    seed_step: int = 5
    max_diagonal_shift: int = 10
    min_cover_rate: float = 0.25
    border_rate: float = 0.15
    min_hits: int = 2

    def __post_init__(self) -> None:
        if self.seed_length <= 0:
            raise ValueError(f"seed_length must be positive, got {self.seed_length}")
        if self.seed_step <= 0:
            raise ValueError(f"seed_step must be positive, got {self.seed_step}")
        if self.max_diagonal_shift < 0:
            raise ValueError(
                f"max_diagonal_shift must be non-negative, got {self.max_diagonal_shift}"
            )
        for name in ("min_cover_rate", "border_rate"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must lie in [0, 1], got {value}")
        if self.min_hits < 1:
            raise ValueError(f"min_hits must be at least 1, got {self.min_hits}")

    @classmethod
    def from_error_rates(
        cls,
        substitutions: float = 0.02,
        indels: float = 0.01,
        *,
        rate_of_cover: float = 2.0,
        **overrides,
    ) -> "OverlapConfiguration":
        """Derive seed length, step and diagonal tolerance from error rates.

        Errors are assumed independent, so the per-base error rate is
        ``s + i - s*i``. Seeds are sized so that a seed survives two errors
        per ten-fold length, and the tolerance grows with the indel share of
        the errors.
        """

        if not 0.0 <= substitutions < 1.0 or not 0.0 <= indels < 1.0:
            raise ValueError("error rates must lie in [0, 1)")
        error_rate = substitutions + indels - substitutions * indels
        if error_rate <= 0:
            raise ValueError("at least one error rate must be positive")
        seed_length = max(1, int(LN10 / (2 * error_rate)))
        max_shift = 20 * int(indels * (LN1000000 / error_rate))
        seed_step = max(1, int(seed_length / rate_of_cover))
        params = dict(
            seed_length=seed_length,
            seed_step=seed_step,
            max_diagonal_shift=max_shift,
        )
        params.update(overrides)
        return cls(**params)
