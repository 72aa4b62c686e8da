"""Data structures for run configuration and results.

Structure:
- MeshParameters: Input configuration (logged to MLflow at start)
- TransferMetrics: Output results of a localization + transfer pass
"""

from dataclasses import dataclass, field, asdict
from typing import List

import pandas as pd


# ========================================================
# Parameters (Input Configuration)
# ========================================================


@dataclass
class MeshParameters:
    """Structured background mesh and particle seeding parameters."""

    element_type: str = "quad4"
    lengths: List[float] = field(default_factory=lambda: [1.0, 1.0])
    ncells: List[int] = field(default_factory=lambda: [4, 4])
    particles_per_dim: int = 2  # per direction: particles_per_dim**tdim per cell
    nphases: int = 1
    density: float = 1000.0

    def __post_init__(self):
        self.lengths = [float(v) for v in self.lengths]
        self.ncells = [int(v) for v in self.ncells]
        if len(self.lengths) != len(self.ncells):
            raise ValueError(
                f"lengths ({len(self.lengths)}) and ncells ({len(self.ncells)}) "
                "must have the same dimension"
            )

    @property
    def tdim(self) -> int:
        return len(self.lengths)

    def to_dataframe(self):
        return pd.DataFrame([asdict(self)])

    def to_mlflow(self) -> dict:
        """Flatten list-valued entries for ``mlflow.log_params``."""
        flat = {}
        for key, value in asdict(self).items():
            if isinstance(value, list):
                for i, v in enumerate(value):
                    flat[f"{key}_{i}"] = v
            else:
                flat[key] = value
        return flat


# ========================================================
# Metrics (Output Results)
# ========================================================


@dataclass
class TransferMetrics:
    """Results of one localization and particle-to-grid pass."""

    nparticles: int = 0
    nlocated: int = 0
    nunlocated: int = 0
    particle_mass: float = 0.0
    nodal_mass: float = 0.0
    mass_error: float = 0.0
    particle_momentum_norm: float = 0.0
    nodal_momentum_norm: float = 0.0
    wall_time_seconds: float = 0.0

    def to_dataframe(self):
        return pd.DataFrame([asdict(self)])

    def to_mlflow(self) -> dict:
        return {k: float(v) for k, v in asdict(self).items()}
