from __future__ import annotations
import os
from dataclasses import dataclass, fields, replace
from typing import Optional

from dotenv import find_dotenv, load_dotenv

# Env var per threshold; see FormThresholds.from_env
ENV_PREFIX = "PUSHUP_"


@dataclass(frozen=True)
class FormThresholds:
    # Phase triggers
    elbow_angle_down: float = 110.0   # UP -> DOWN below this
    elbow_angle_up: float = 160.0     # DOWN -> UP above this (closes the rep)
    # Quality
    good_depth: float = 90.0          # phase minimum must reach this or the rep is shallow
    body_alignment_min: float = 155.0  # below -> pike
    body_alignment_max: float = 185.0  # above -> sag
    # Gates
    min_confidence: float = 0.3
    vertical_ratio: float = 1.5       # dy > dx * ratio means standing, not plank

    def with_overrides(self, **overrides: Optional[float]) -> "FormThresholds":
        return replace(self, **{k: float(v) for k, v in overrides.items() if v is not None})

    @classmethod
    def from_env(cls, load: bool = True) -> "FormThresholds":
        """Defaults overridden by PUSHUP_<FIELD> env vars (and a .env file)."""
        if load:
            load_dotenv(find_dotenv(usecwd=True))
        overrides = {}
        for f in fields(cls):
            raw = os.getenv(ENV_PREFIX + f.name.upper())
            if raw is None or raw.strip() == "":
                continue
            try:
                overrides[f.name] = float(raw)
            except ValueError:
                raise ValueError(f"{ENV_PREFIX}{f.name.upper()} must be a number, got {raw!r}") from None
        return cls().with_overrides(**overrides)


DEFAULT_THRESHOLDS = FormThresholds()
