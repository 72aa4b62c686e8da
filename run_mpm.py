"""
MPM Transfer Runner - Hydra + MLflow integration for the localization/transfer core.

Single runs:
    python run_mpm.py
    python run_mpm.py mesh.ncells=[16,16] mesh.particles_per_dim=3
    python run_mpm.py --config-name mesh_3d

Parameter sweeps (multirun mode):
    python run_mpm.py -m mesh.particles_per_dim=1,2,3

MLflow modes:
    files        - file-based ./mlruns (default)
    remote       - tracking server from MLFLOW_TRACKING_URI (.env)
"""

import logging
import os
import sys
import tempfile
from pathlib import Path

import hydra
import mlflow
import numpy as np
from dotenv import load_dotenv
from hydra.utils import instantiate
from omegaconf import DictConfig, OmegaConf
from rich.console import Console
from rich.table import Table

# Load .env file (for MLflow credentials)
load_dotenv()

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent / "src"))

from mpm.materials import default_material_registry  # noqa: E402
from mpm.meshing import create_structured_mesh, seed_particles  # noqa: E402
from mpm.transfer import run_transfer_pass  # noqa: E402

log = logging.getLogger(__name__)
console = Console()


# =============================================================================
# MLflow Logging
# =============================================================================


def setup_mlflow(cfg: DictConfig) -> str:
    """Setup MLflow tracking and return experiment name."""
    tracking_uri = cfg.mlflow.get("tracking_uri", "./mlruns")
    if str(cfg.mlflow.get("mode", "")).lower() in ("files", "local"):
        os.environ["MLFLOW_TRACKING_URI"] = str(tracking_uri)
    else:
        # Remote server configured through .env
        tracking_uri = os.environ.get("MLFLOW_TRACKING_URI", tracking_uri)
    mlflow.set_tracking_uri(tracking_uri)

    experiment_name = cfg.experiment_name
    project_prefix = cfg.mlflow.get("project_prefix", "")
    if project_prefix and not experiment_name.startswith("/"):
        experiment_name = f"{project_prefix}/{experiment_name}"

    try:
        mlflow.set_experiment(experiment_name)
    except Exception as exc:
        # If experiment was previously deleted, fall back to a new name
        fallback = f"{experiment_name}-restored"
        log.warning(
            "MLflow set_experiment failed for '%s' (%s); falling back to '%s'",
            experiment_name,
            exc,
            fallback,
        )
        experiment_name = fallback
        mlflow.set_experiment(experiment_name)
    return experiment_name


def print_summary(params, metrics):
    table = Table(title="MPM transfer pass")
    table.add_column("quantity")
    table.add_column("value", justify="right")
    table.add_row("element", params.element_type)
    table.add_row("cells", "x".join(str(n) for n in params.ncells))
    table.add_row("particles", f"{metrics.nlocated}/{metrics.nparticles} located")
    table.add_row("particle mass", f"{metrics.particle_mass:.6e}")
    table.add_row("nodal mass", f"{metrics.nodal_mass:.6e}")
    table.add_row("mass error", f"{metrics.mass_error:.3e}")
    table.add_row("wall time", f"{metrics.wall_time_seconds:.3f} s")
    console.print(table)


# =============================================================================
# Main Entry Point
# =============================================================================


@hydra.main(config_path="conf", config_name="config", version_base=None)
def main(cfg: DictConfig) -> None:
    """Hydra entry point - builds a mesh, runs one transfer pass, logs to MLflow."""
    params = instantiate(cfg.mesh, _convert_="all")
    log.info(f"Mesh: {params.element_type}, ncells={params.ncells}, ppd={params.particles_per_dim}")

    experiment_name = setup_mlflow(cfg)
    log.info(f"MLflow experiment: {experiment_name}")

    mesh = create_structured_mesh(params.lengths, params.ncells, params.element_type, nphases=params.nphases)
    particles = seed_particles(
        mesh, params.particles_per_dim, density=params.density, nphases=params.nphases
    )
    velocity = np.asarray(cfg.initial_velocity, dtype=float)[: params.tdim]
    for particle in particles:
        particle.velocity[:] = velocity[:, None]

    material = default_material_registry().create(
        cfg.material.name, 0, OmegaConf.to_container(cfg.material.properties)
    )

    run_name = f"{params.element_type}_{'x'.join(str(n) for n in params.ncells)}_ppd{params.particles_per_dim}"
    with mlflow.start_run(run_name=run_name, tags={"element": params.element_type}):
        mlflow.log_params(params.to_mlflow())
        mlflow.log_dict(OmegaConf.to_container(cfg), "config.yaml")

        metrics = run_transfer_pass(
            mesh,
            material,
            gravity=list(cfg.gravity),
            dstrain=list(cfg.strain_increment),
        )
        mlflow.log_metrics(metrics.to_mlflow())

        with tempfile.TemporaryDirectory() as tmpdir:
            summary_path = Path(tmpdir) / "nodal_summary.csv"
            mesh.nodal_summary().to_csv(summary_path, index=False)
            mlflow.log_artifact(str(summary_path), artifact_path="nodes")

        if metrics.nunlocated:
            log.warning(f"{metrics.nunlocated} particle(s) were not located")

    print_summary(params, metrics)


if __name__ == "__main__":
    main()
