"""Core configuration, errors and reference tables."""

from .config import Settings, get_settings
from .models import CamelModel
from .exceptions import (
    EligibilityEngineError,
    EvaluationError,
    InvalidExpressionError,
    MaxDepthExceededError,
    OperandTypeError,
    RulePackageLoadError,
    UnknownOperatorError,
)
from .thresholds import FPL_2024, PovertyGuidelines, PublishedLimits, round_half_up

__all__ = [
    "CamelModel",
    "Settings",
    "get_settings",
    "EligibilityEngineError",
    "EvaluationError",
    "InvalidExpressionError",
    "MaxDepthExceededError",
    "OperandTypeError",
    "RulePackageLoadError",
    "UnknownOperatorError",
    "FPL_2024",
    "PovertyGuidelines",
    "PublishedLimits",
    "round_half_up",
]
