"""Configuration for the formula engine."""

import os
from dataclasses import dataclass
from typing import List


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() not in ("0", "false", "no", "off", "")


@dataclass
class EngineConfig:
    """Central configuration for MathEngine."""

    # Central-difference step for f'(x)
    derivative_step: float = 0.001

    # Simpson's rule subintervals (must be even)
    integral_intervals: int = 20

    # Synthesize native Python functions next to the evaluator program
    enable_native: bool = True

    # Variable a bare f' is evaluated at
    default_variable: str = "x"

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Create config from environment variables."""
        return cls(
            derivative_step=float(os.getenv("FUNCTER_DERIVATIVE_STEP", "0.001")),
            integral_intervals=int(os.getenv("FUNCTER_INTEGRAL_INTERVALS", "20")),
            enable_native=_env_bool("FUNCTER_ENABLE_NATIVE", True),
        )

    def validate(self) -> List[str]:
        """Validate configuration, return list of warnings."""
        warnings = []

        if self.derivative_step <= 0:
            warnings.append(f"derivative_step must be positive, got {self.derivative_step}")
        if self.integral_intervals <= 0:
            warnings.append(f"integral_intervals must be positive, got {self.integral_intervals}")
        elif self.integral_intervals % 2:
            warnings.append(
                f"integral_intervals must be even for Simpson's rule, got {self.integral_intervals}"
            )
        if not self.default_variable.isidentifier():
            warnings.append(f"default_variable {self.default_variable!r} is not a valid name")

        return warnings

    @property
    def simpson_intervals(self) -> int:
        """Interval count actually used: positive and even."""
        n = max(2, self.integral_intervals)
        return n + (n % 2)

    @property
    def step(self) -> float:
        return self.derivative_step if self.derivative_step > 0 else 0.001
