"""
Configuration Files
===================
This module reads the plain-text `key = value` configuration shared by the
generator and the classifier.

Why is this file needed?
------------------------
1. Tokenizing: Comment lines ('#'), blank lines and lines without '=' are
   ignored; unknown keys are reported and ignored.
2. Typing: Values are converted into the DomainConfig / GeneratorConfig
   dataclasses and validated once, so the algorithms never see raw strings.
3. Material blocks: A `material` line opens a new MaterialSpec; following
   material keys apply to it until the next `material` line.

Exports:
    read_config_entries: Tokenizer returning (line number, key, value) triples.
    DomainConfig: Box dimensions and piston thickness.
    GeneratorConfig: Everything the geometry generator needs.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
import os
from typing import Callable, Optional

from compositegen.errors import ConfigurationError
from compositegen.model.materials import Distribution, MaterialSpec, Morphology

logger = logging.getLogger(__name__)

# Per-particle placement attempts before the run is aborted
ITERLIM: int = 10000

DOMAIN_KEYS = ("length", "width", "height", "piston_thicc")

MATERIAL_KEYS = (
    "vol_frac", "count", "mesh_size", "morph",
    "rad_distrib", "rad_mean", "rad_min", "rad_max", "rad_std_dev",
    "len_distrib", "len_mean", "len_min", "len_max", "len_std_dev",
)


def read_config_entries(filename: str | os.PathLike) -> list[tuple[int, str, str]]:
    """
    Tokenize a configuration file.

    Returns:
        (line number, key, value) for every `key = value` line, in file order.
        Keys and values are stripped; the value may be empty.
    """
    entries: list[tuple[int, str, str]] = []
    with open(filename, "r", encoding="utf-8") as f:
        for line_no, raw in enumerate(f, start=1):
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue
            key, value = line.split("=", 1)
            entries.append((line_no, key.strip(), value.strip()))
    return entries


def _to_float(key: str, value: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(f"Invalid number for {key}: '{value}'.") from None


def _to_int(key: str, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"Invalid integer for {key}: '{value}'.") from None


def _to_bool(key: str, value: str) -> bool:
    match value.lower():
        case "1" | "true" | "yes" | "on":
            return True
        case "0" | "false" | "no" | "off":
            return False
    raise ConfigurationError(f"Invalid boolean for {key}: '{value}'.")


@dataclass
class DomainConfig:
    """Axis-aligned box [0, length] x [0, width] x [0, height] with a piston slab on top."""
    length: float = 10000.0
    width: float = 5000.0
    height: float = 5500.0
    piston_thickness: float = 500.0

    @property
    def piston_base(self) -> float:
        """Height of the piston/matrix interface."""
        return self.height - self.piston_thickness

    @property
    def background_volume(self) -> float:
        """Volume of the box below the piston slab."""
        return self.length * self.width * self.piston_base

    def validate(self) -> None:
        if self.length <= 0.0 or self.width <= 0.0 or self.height <= 0.0:
            raise ConfigurationError("Box dimensions must be positive.")
        if not (0.0 <= self.piston_thickness < self.height):
            raise ConfigurationError("Piston thickness must lie in [0, height).")

    def apply(self, key: str, value: str) -> bool:
        """Set a domain key; returns False if `key` is not a domain key."""
        match key:
            case "length":
                self.length = _to_float(key, value)
            case "width":
                self.width = _to_float(key, value)
            case "height":
                self.height = _to_float(key, value)
            case "piston_thicc":
                self.piston_thickness = _to_float(key, value)
            case _:
                return False
        return True

    @classmethod
    def from_file(cls, filename: str | os.PathLike) -> DomainConfig:
        """Read only the domain keys; every other key is ignored silently."""
        domain = cls()
        for _, key, value in read_config_entries(filename):
            if key in DOMAIN_KEYS and value:
                domain.apply(key, value)
        domain.validate()
        logger.debug(f"Domain: {domain}")
        return domain


@dataclass
class GeneratorConfig:
    """
    Holds the geometry generator configuration.
    """
    domain: DomainConfig = field(default_factory=DomainConfig)
    global_mesh_size: float = 200.0
    tol_particles: float = 50.0
    tol_particle_boundary: float = 50.0
    # 0 means "seed from the clock"
    seed: int = 0
    iter_limit: int = ITERLIM
    # Reference behaviour: Gaussian size generator re-created for every particle
    reseed_per_particle: bool = True
    materials: list[MaterialSpec] = field(default_factory=list)

    def mesh_size_for(self, material: MaterialSpec) -> float:
        return material.mesh_size if material.mesh_size else self.global_mesh_size

    def validate(self) -> None:
        self.domain.validate()
        if self.tol_particles < 0.0 or self.tol_particle_boundary < 0.0:
            raise ConfigurationError("Tolerances must not be negative.")
        if self.iter_limit <= 0:
            raise ConfigurationError("iter_limit must be positive.")
        if self.seed < 0:
            raise ConfigurationError(f"rand_seed must not be negative, got {self.seed}.")
        names = [m.name for m in self.materials]
        if len(set(names)) != len(names):
            raise ConfigurationError(f"Duplicate material names: {names}.")
        for material in self.materials:
            material.validate()

    @classmethod
    def from_file(cls, filename: str | os.PathLike) -> GeneratorConfig:
        """Parse and validate a generator configuration file."""
        config = cls()
        current: Optional[MaterialSpec] = None

        def require(key: str, value: str) -> None:
            if not value:
                where = f" in {current.name}" if current is not None else ""
                raise ConfigurationError(f"No value found for {key}{where}.")

        def material(key: str) -> MaterialSpec:
            if current is None:
                raise ConfigurationError(f"'{key}' given before any 'material' line.")
            return current

        # Global keys that may be left empty (value keeps its default)
        optional_globals: dict[str, Callable[[str], None]] = {
            "tol_particles": lambda v: setattr(config, "tol_particles", _to_float("tol_particles", v)),
            "tol_particles_boundaries": lambda v: setattr(
                config, "tol_particle_boundary", _to_float("tol_particles_boundaries", v)
            ),
            "rand_seed": lambda v: setattr(config, "seed", _to_int("rand_seed", v)),
            "piston_thicc": lambda v: config.domain.apply("piston_thicc", v),
            "iter_limit": lambda v: setattr(config, "iter_limit", _to_int("iter_limit", v)),
            "reseed_per_particle": lambda v: setattr(
                config, "reseed_per_particle", _to_bool("reseed_per_particle", v)
            ),
        }

        for line_no, key, value in read_config_entries(filename):
            if key in ("length", "width", "height"):
                require(key, value)
                config.domain.apply(key, value)

            elif key == "global_mesh_size":
                require(key, value)
                config.global_mesh_size = _to_float(key, value)

            elif key in optional_globals:
                if value:
                    optional_globals[key](value)

            elif key == "material":
                require(key, value)
                current = MaterialSpec(name=value)
                config.materials.append(current)

            elif key in ("vol_frac", "count", "mesh_size"):
                mat = material(key)
                if not value:
                    continue
                if key == "vol_frac":
                    mat.vol_frac = _to_float(key, value)
                elif key == "count":
                    mat.count = _to_int(key, value)
                else:
                    mat.mesh_size = _to_float(key, value)

            elif key == "morph":
                mat = material(key)
                require(key, value)
                mat.morph = Morphology.from_token(value)

            elif key in MATERIAL_KEYS:
                mat = material(key)
                require(key, value)
                prefix, _, attr = key.partition("_")
                dist = mat.radius if prefix == "rad" else mat.length
                match attr:
                    case "distrib":
                        dist.kind = Distribution.from_token(value)
                    case "mean":
                        dist.mean = _to_float(key, value)
                    case "min":
                        dist.minimum = _to_float(key, value)
                    case "max":
                        dist.maximum = _to_float(key, value)
                    case "std_dev":
                        dist.std_dev = _to_float(key, value)

            else:
                logger.warning(f"Unknown setting ({key}) on line {line_no}. Ignored.")

        config.validate()
        logger.debug(f"Parsed {len(config.materials)} material(s) from {filename}")
        return config
