"""
Material Specification
======================
Defines the configuration data structures for particle materials.
These classes hold the PARAMETERS needed to place the particles of one
material: morphology, target quantity and size distributions.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Optional, TYPE_CHECKING
import logging
import math

from compositegen.errors import ConfigurationError

if TYPE_CHECKING:
    import numpy as np

logger = logging.getLogger(__name__)


class Morphology(StrEnum):
    """Particle shape kind. The value is the token used in the control-point file."""
    CYLINDER = "cyl"
    SPHERE = "sph"

    @classmethod
    def from_token(cls, token: str) -> Morphology:
        match token.strip().lower():
            case "cylinder" | "cyl":
                return cls.CYLINDER
            case "sphere" | "sph":
                return cls.SPHERE
        raise ConfigurationError(f"Unknown morphology ({token}).")


class Distribution(StrEnum):
    GAUSSIAN = "gaussian"
    UNIFORM = "uniform"

    @classmethod
    def from_token(cls, token: str) -> Distribution:
        match token.strip().lower():
            case "gaussian" | "gauss":
                return cls.GAUSSIAN
            case "uniform" | "flat":
                return cls.UNIFORM
        raise ConfigurationError(f"Unknown distribution ({token}).")


@dataclass
class SizeDistribution:
    """
    Distribution of one particle dimension (radius or length).

    UNIFORM needs `minimum` and `maximum`. GAUSSIAN needs a mean and a standard
    deviation; when only `minimum`/`maximum` are given the mean is their
    midpoint and the standard deviation is (max - min) / 6.
    """
    kind: Distribution = Distribution.UNIFORM
    mean: Optional[float] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    std_dev: Optional[float] = None

    @property
    def is_specified(self) -> bool:
        return any(v is not None for v in (self.mean, self.minimum, self.maximum, self.std_dev))

    @property
    def has_range(self) -> bool:
        return self.minimum is not None and self.maximum is not None

    @property
    def representative(self) -> float:
        """Mean value used for volume-fraction counts and Gaussian sampling."""
        if self.mean is not None:
            return self.mean
        if self.has_range:
            return (self.minimum + self.maximum) / 2.0
        raise ConfigurationError("Size distribution has neither a mean nor a min/max range.")

    @property
    def resolved_std_dev(self) -> float:
        if self.std_dev is not None:
            return self.std_dev
        if self.has_range:
            return (self.maximum - self.minimum) / 6.0
        raise ConfigurationError("Size distribution has no standard deviation and no min/max range.")

    def validate(self, label: str, material: str) -> None:
        """Raise ConfigurationError if the distribution cannot be sampled."""
        match self.kind:
            case Distribution.UNIFORM:
                if self.mean is not None:
                    raise ConfigurationError(
                        f"Cannot use {label}_mean with Uniform distribution for {material}! "
                        f"Please specify {label}_min & {label}_max OR use Gaussian distribution."
                    )
                if not self.has_range:
                    raise ConfigurationError(
                        f"Did not specify {label}_min and {label}_max for {material}."
                    )
                if self.minimum > self.maximum:
                    raise ConfigurationError(
                        f"{label}_min is larger than {label}_max for {material}."
                    )
            case Distribution.GAUSSIAN:
                if self.mean is None and not self.has_range:
                    raise ConfigurationError(
                        f"Did not specify {label}_mean (or {label}_min & {label}_max) for {material}."
                    )
                if self.std_dev is None and not self.has_range:
                    raise ConfigurationError(
                        f"Did not specify standard deviation ({label}) for {material}."
                    )
                if self.resolved_std_dev < 0.0:
                    raise ConfigurationError(
                        f"Negative standard deviation ({label}) for {material}."
                    )

    def sample(self, uniform_rng: np.random.Generator, gaussian_rng: np.random.Generator) -> float:
        """Draw one value; uniform draws and Gaussian draws use separate generators."""
        match self.kind:
            case Distribution.UNIFORM:
                return float(uniform_rng.uniform(self.minimum, self.maximum))
            case Distribution.GAUSSIAN:
                return float(gaussian_rng.normal(self.representative, self.resolved_std_dev))
        raise ConfigurationError(f"Unknown distribution ({self.kind}).")


@dataclass
class MaterialSpec:
    """
    One `material` block of the generator configuration.
    """
    name: str
    morph: Optional[Morphology] = None
    vol_frac: Optional[float] = None
    count: Optional[int] = None
    mesh_size: Optional[float] = None
    radius: SizeDistribution = field(default_factory=SizeDistribution)
    length: SizeDistribution = field(default_factory=SizeDistribution)

    def validate(self) -> None:
        """Check the block is complete and self-consistent."""
        if self.morph is None:
            raise ConfigurationError(f"No value found for morph in {self.name}.")

        if self.vol_frac is None and self.count is None:
            raise ConfigurationError(
                f"Did not specify volume fraction or count for {self.name}."
            )
        if self.vol_frac is not None and self.count is not None:
            raise ConfigurationError(
                f"Cannot specify both volume fraction and count for {self.name}."
            )
        if self.vol_frac is not None and not (0.0 < self.vol_frac <= 1.0):
            raise ConfigurationError(f"Volume fraction of {self.name} must lie in (0, 1].")
        if self.count is not None and self.count < 0:
            raise ConfigurationError(f"Negative particle count for {self.name}.")

        self.radius.validate("rad", self.name)

        match self.morph:
            case Morphology.CYLINDER:
                self.length.validate("len", self.name)
            case Morphology.SPHERE:
                if self.length.is_specified:
                    raise ConfigurationError(
                        f"Cannot use len specs with sphere morphology ({self.name})."
                    )

    def particle_volume(self) -> float:
        """Volume of a representative particle (mean radius, mean length)."""
        r = self.radius.representative
        match self.morph:
            case Morphology.CYLINDER:
                return math.pi * r**2 * self.length.representative
            case Morphology.SPHERE:
                return 4.0 / 3.0 * math.pi * r**3
        raise ConfigurationError(f"No value found for morph in {self.name}.")

    def required_count(self, background_volume: float) -> int:
        """Number of particles to place: explicit count, or ceil(vf * V / v_particle)."""
        if self.count is not None:
            return self.count
        return math.ceil(self.vol_frac * background_volume / self.particle_volume())
