"""Scoring policy constants and environment-driven overrides."""

import os
from typing import Dict, Optional
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict


class Weights(BaseModel):
    """Blend weights for the grade, attendance and behavior sub-metrics."""
    model_config = ConfigDict(frozen=True)

    grade: float
    attendance: float
    behavior: float


class TierThresholds(BaseModel):
    """Failure-probability cuts; a value must exceed a cut to reach that tier."""
    model_config = ConfigDict(frozen=True)

    medium: float
    high: float


class ScoringConfig(BaseModel):
    """
    Immutable set of policy constants used by every scoring function.

    Risk scoring and the performance index use separate weight sets on
    purpose; never derive one from the other.
    """
    model_config = ConfigDict(frozen=True)

    grade_scale_max: float = 7.0
    pass_threshold: float = 4.0
    attendance_threshold: float = 85.0
    risk_weights: Weights = Weights(grade=0.5, attendance=0.3, behavior=0.2)
    performance_weights: Weights = Weights(grade=0.6, attendance=0.3, behavior=0.1)
    grade_penalty: float = 25.0
    attendance_penalty: float = 15.0
    tier_thresholds: TierThresholds = TierThresholds(medium=40.0, high=70.0)
    negative_observation_cost: float = 5.0
    low_average_warning: float = 4.5


DEFAULT_CONFIG = ScoringConfig()


def parse_mapping(value: str, name: str) -> Dict[str, float]:
    """
    Parse a ``key:value,key:value`` string into a float mapping.

    Args:
        value: Raw environment value, e.g. ``medium:40,high:70``
        name: Variable name, used in error messages

    Returns:
        Dict of lowercased keys to floats
    """
    mapping = {}
    for item in value.split(','):
        if not item.strip():
            continue
        try:
            key, raw = item.split(':')
            mapping[key.strip().lower()] = float(raw.strip())
        except ValueError:
            raise ValueError(f"Invalid {name} entry '{item}': expected key:number")
    return mapping


def _parse_weights(value: str, name: str) -> Weights:
    mapping = parse_mapping(value, name)
    missing = {'grade', 'attendance', 'behavior'} - set(mapping)
    if missing:
        raise ValueError(f"{name} is missing weights for: {', '.join(sorted(missing))}")
    return Weights(**mapping)


def _parse_float(value: str, name: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got '{value}'")


def load_config(env_file: Optional[str] = None) -> ScoringConfig:
    """
    Build a ScoringConfig from environment variables.

    Reads RISK_WEIGHTS, PERFORMANCE_WEIGHTS, TIER_THRESHOLDS, PASS_THRESHOLD,
    ATTENDANCE_THRESHOLD, GRADE_PENALTY and ATTENDANCE_PENALTY. Unset
    variables keep their defaults.
    """
    load_dotenv(env_file)

    overrides = {}

    risk_weights = os.getenv('RISK_WEIGHTS')
    if risk_weights:
        overrides['risk_weights'] = _parse_weights(risk_weights, 'RISK_WEIGHTS')

    performance_weights = os.getenv('PERFORMANCE_WEIGHTS')
    if performance_weights:
        overrides['performance_weights'] = _parse_weights(performance_weights, 'PERFORMANCE_WEIGHTS')

    tiers = os.getenv('TIER_THRESHOLDS')
    if tiers:
        thresholds = parse_mapping(tiers, 'TIER_THRESHOLDS')
        if set(thresholds) != {'medium', 'high'}:
            raise ValueError("TIER_THRESHOLDS must define exactly 'medium' and 'high'")
        if thresholds['medium'] > thresholds['high']:
            raise ValueError("TIER_THRESHOLDS: medium cut must not exceed high cut")
        overrides['tier_thresholds'] = TierThresholds(**thresholds)

    for env_name, field in (
        ('PASS_THRESHOLD', 'pass_threshold'),
        ('ATTENDANCE_THRESHOLD', 'attendance_threshold'),
        ('GRADE_PENALTY', 'grade_penalty'),
        ('ATTENDANCE_PENALTY', 'attendance_penalty'),
    ):
        raw = os.getenv(env_name)
        if raw:
            overrides[field] = _parse_float(raw, env_name)

    return ScoringConfig(**overrides)
