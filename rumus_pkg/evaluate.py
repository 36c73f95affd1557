"""Evaluation settings and the Evaluable interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum

from . import config
from .number import Number


class AngleUnit(Enum):
    DEGREE = "degree"
    RADIAN = "radian"


def _default_angle_unit() -> AngleUnit:
    return AngleUnit(config.DEFAULT_ANGLE_UNIT)


def _default_use_floats() -> bool:
    return config.USE_FLOATS


@dataclass(frozen=True)
class EvaluationSettings:
    """Settings which change how functions are evaluated.

    Defaults are read from config when the settings are created, so CLI
    overrides of config values apply.
    """

    angle_unit: AngleUnit = field(default_factory=_default_angle_unit)
    use_floats: bool = field(default_factory=_default_use_floats)


class Evaluable(ABC):
    """Something which evaluates to a Number, optionally after substituting a variable."""

    @abstractmethod
    def evaluate(self, settings: EvaluationSettings) -> Number:
        """Evaluate to a Number.

        Raises:
            MathsError: If evaluation fails
        """

    @abstractmethod
    def substitute(self, variable: str, value: Number) -> Evaluable:
        """Return a new Evaluable with ``variable`` replaced by ``value``."""
