"""MGPC (Musical Genre Proximity Coefficient) similarity metric.

# ─── HOW MGPC WORKS ──────────────────────────────────────────────────
#
#   MGPC = clamp(1 - Σ weight_i * distance_i, 0, 1)
#
# Six distance components, each normalised and clamped to [0, 1]:
#
#   component   distance                                        default weight
#   mode        |mode_a - mode_b|                                0.20
#   bpm         |bpm_avg_a - bpm_avg_b| / 250                    0.15
#   volume      |vol_a - vol_b| / 60                             0.10
#   compas      1 if either is 0, else |c_a - c_b| / 6           0.15
#   duration    |dur_a - dur_b| / 3600                           0.10
#   key         1 if either is -1, else circular distance / 6    0.30
#
# Key distance wraps around the 12-tone wheel: 11 → 0 is one step.
# Undefined attributes (key -1, compás 0) count as maximally distant, so two
# genres with no known key never look "identical" on that axis.
#
# Weights are an explicit immutable value (MgpcWeights) handed to the
# metric at construction.  There is no module-level mutable weight state,
# so two metrics with different weights can coexist in one process.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.models.genre import GenreAttributes

_BPM_SPAN = 250.0
_VOLUME_SPAN = 60.0
_COMPAS_SPAN = 6.0
_DURATION_SPAN = 3600.0
_KEY_WHEEL = 12
_KEY_MAX_STEPS = 6.0

_WEIGHT_SUM_TOLERANCE = 1e-6

# Lower bounds of the similarity labels, highest first.
_INTERPRETATION_BANDS: tuple[tuple[float, str], ...] = (
    (0.8, "Very High Similarity"),
    (0.6, "High Similarity"),
    (0.4, "Moderate Similarity"),
    (0.2, "Low Similarity"),
)

_COMPAS_DESCRIPTIONS = {
    0: "Undefined",
    2: "2/4 time",
    3: "3/4 time (Waltz)",
    4: "4/4 time (Common)",
    6: "6/8 time",
}


class MgpcWeights(BaseModel):
    """The six MGPC component weights.  Non-negative, summing to 1.0."""

    model_config = ConfigDict(frozen=True)

    mode: float = Field(default=0.20, ge=0.0)
    bpm: float = Field(default=0.15, ge=0.0)
    volume: float = Field(default=0.10, ge=0.0)
    compas: float = Field(default=0.15, ge=0.0)
    duration: float = Field(default=0.10, ge=0.0)
    key: float = Field(default=0.30, ge=0.0)

    @model_validator(mode="after")
    def check_sum(self) -> MgpcWeights:
        total = self.mode + self.bpm + self.volume + self.compas + self.duration + self.key
        if not math.isclose(total, 1.0, abs_tol=_WEIGHT_SUM_TOLERANCE):
            raise ValueError(f"MGPC weights must sum to 1.0, got {total:.6f}")
        return self


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


# ── Component distances ───────────────────────────────────────────────
# Each returns a value in [0, 1].

def mode_distance(mode_a: float, mode_b: float) -> float:
    return _clamp(abs(mode_a - mode_b))


def bpm_distance(bpm_avg_a: float, bpm_avg_b: float) -> float:
    return _clamp(abs(bpm_avg_a - bpm_avg_b) / _BPM_SPAN)


def volume_distance(volume_a: int, volume_b: int) -> float:
    return _clamp(abs(volume_a - volume_b) / _VOLUME_SPAN)


def compas_distance(compas_a: int, compas_b: int) -> float:
    if compas_a == 0 or compas_b == 0:
        return 1.0
    return _clamp(abs(compas_a - compas_b) / _COMPAS_SPAN)


def duration_distance(duration_a: int, duration_b: int) -> float:
    return _clamp(abs(duration_a - duration_b) / _DURATION_SPAN)


def key_distance(key_a: int, key_b: int) -> float:
    """Circular distance between two pitch classes, normalised by 6 steps."""
    if key_a == -1 or key_b == -1:
        return 1.0
    direct = abs(key_a - key_b) % _KEY_WHEEL
    steps = min(direct, _KEY_WHEEL - direct)
    return _clamp(steps / _KEY_MAX_STEPS)


def interpret_mgpc(mgpc: float) -> str:
    """Coarse human-readable label for an MGPC value."""
    for lower_bound, label in _INTERPRETATION_BANDS:
        if mgpc >= lower_bound:
            return label
    return "Very Low Similarity"


def describe_compas(compas_metric: int) -> str:
    return _COMPAS_DESCRIPTIONS.get(
        compas_metric, f"{compas_metric}/4 or {compas_metric}/8 time"
    )


class SimilarityMetric:
    """Pure, deterministic MGPC computation over two attribute sets."""

    def __init__(self, weights: MgpcWeights | None = None) -> None:
        self._weights = weights or MgpcWeights()

    @property
    def weights(self) -> MgpcWeights:
        return self._weights

    def distances(self, a: GenreAttributes, b: GenreAttributes) -> dict[str, float]:
        """Per-component distances, keyed like the weight fields."""
        return {
            "mode": mode_distance(a.mode, b.mode),
            "bpm": bpm_distance(a.bpm_avg, b.bpm_avg),
            "volume": volume_distance(a.volume_db, b.volume_db),
            "compas": compas_distance(a.compas_metric, b.compas_metric),
            "duration": duration_distance(a.avg_duration_sec, b.avg_duration_sec),
            "key": key_distance(a.dominant_key, b.dominant_key),
        }

    def compute(self, a: GenreAttributes, b: GenreAttributes) -> float:
        """Return the MGPC of *a* and *b*, always within ``[0, 1]``."""
        weights = self._weights
        parts = self.distances(a, b)
        # Fixed summation order keeps compute(a, b) == compute(b, a) exactly.
        weighted = (
            weights.mode * parts["mode"]
            + weights.bpm * parts["bpm"]
            + weights.volume * parts["volume"]
            + weights.compas * parts["compas"]
            + weights.duration * parts["duration"]
            + weights.key * parts["key"]
        )
        return _clamp(1.0 - weighted)

    def breakdown(self, a: GenreAttributes, b: GenreAttributes) -> dict[str, Any]:
        """MGPC plus the distance and weighted contribution of every component."""
        weights = self._weights.model_dump()
        parts = self.distances(a, b)
        return {
            "mgpc": self.compute(a, b),
            "components": {
                name: {
                    "distance": distance,
                    "weight": weights[name],
                    "contribution": weights[name] * distance,
                }
                for name, distance in parts.items()
            },
        }

    @staticmethod
    def bpm_overlap(a: GenreAttributes, b: GenreAttributes) -> float:
        """Share of the wider BPM range covered by the overlap of both ranges.

        0 when the ranges are disjoint; 1 when both are the same single value.
        """
        overlap_start = max(a.bpm_lower, b.bpm_lower)
        overlap_end = min(a.bpm_upper, b.bpm_upper)
        if overlap_start > overlap_end:
            return 0.0

        widest = max(a.bpm_upper - a.bpm_lower, b.bpm_upper - b.bpm_lower)
        if widest == 0:
            return 1.0
        return (overlap_end - overlap_start) / widest
