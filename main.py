"""
Poroelasticity benchmarks - unified entry point.

Usage:
    python main.py scenario=terzaghi grid_type=staggered interp_scheme=NA
    python main.py scenario=terzaghi grid_type=collocated interp_scheme=I2DPIS mesh=6 Nt=81
    python main.py -m grid_type=collocated interp_scheme=CDS,I2DPIS time_step_fraction=0.25,0.1,0.05,0.01
"""

import logging
import os
import sys
import tempfile
from pathlib import Path

import hydra
import mlflow
from dotenv import load_dotenv
from omegaconf import DictConfig, OmegaConf

load_dotenv()
sys.path.insert(0, str(Path(__file__).parent / "src"))

from poroelasticity import PoroelasticityError, RunResult, ScenarioParameters, run_scenario  # noqa: E402
from poroelasticity.materials import load_properties  # noqa: E402

log = logging.getLogger(__name__)


def get_experiment_name(cfg: DictConfig) -> str:
    """Build full experiment name with optional prefix."""
    name = cfg.experiment_name
    prefix = cfg.mlflow.get("project_prefix", "")
    if prefix and not name.startswith("/"):
        return f"{prefix}/{name}"
    return name


def setup_mlflow(cfg: DictConfig) -> str:
    """Setup MLflow tracking and return experiment name."""
    tracking_uri = cfg.mlflow.get("tracking_uri", "./mlruns")
    if str(cfg.mlflow.get("mode", "")).lower() in ("files", "local"):
        os.environ.pop("MLFLOW_TRACKING_URI", None)
    os.environ["MLFLOW_TRACKING_URI"] = str(tracking_uri)
    mlflow.set_tracking_uri(tracking_uri)

    experiment_name = get_experiment_name(cfg)
    try:
        mlflow.set_experiment(experiment_name)
    except Exception as exc:
        experiment_name = f"{experiment_name}-restored"
        log.warning(f"MLflow set_experiment failed ({exc}); using '{experiment_name}'")
        mlflow.set_experiment(experiment_name)

    return experiment_name


def scenario_parameters(cfg: DictConfig) -> ScenarioParameters:
    return ScenarioParameters(
        scenario=cfg.scenario,
        grid_type=cfg.grid_type,
        interp_scheme=cfg.interp_scheme,
        medium=cfg.medium,
        mesh=int(cfg.mesh),
        Nt=int(cfg.Nt),
        time_step_fraction=float(cfg.time_step_fraction),
        total_time=None if cfg.total_time is None else float(cfg.total_time),
        load=float(cfg.load),
        gravity=float(cfg.gravity),
        shape_factor=None if cfg.shape_factor is None else float(cfg.shape_factor),
    )


def export_csv(result: RunResult, export_dir: Path) -> Path:
    """Write snapshots and coefficients next to each other; returns the run directory."""
    p = result.params
    run_dir = export_dir / f"{p.scenario}_{p.grid_type.value}_{p.interp_scheme.value}_m{p.mesh}_Nt{p.Nt}"
    run_dir.mkdir(parents=True, exist_ok=True)
    result.snapshots_dataframe().to_csv(run_dir / "snapshots.csv", index=False)
    result.coefficients_dataframe().to_csv(run_dir / "coefficients.csv", index=False)
    log.info(f"Exported {len(result.snapshots)} snapshot(s) to {run_dir}")
    return run_dir


def run_solver(cfg: DictConfig) -> str:
    """Run one scenario and log to MLflow. Returns run_id."""
    params = scenario_parameters(cfg)
    properties = load_properties(params.medium, cfg.input_dir)
    run_name = f"{params.scenario}_{params.grid_type.value}_{params.interp_scheme.value}_m{params.mesh}"

    parent_run_id = os.environ.get("MLFLOW_PARENT_RUN_ID")
    tags = {"scenario": params.scenario, "grid_type": params.grid_type.value}
    if parent_run_id:
        tags.update({"mlflow.parentRunId": parent_run_id, "parent_run_id": parent_run_id, "sweep": "child"})

    with mlflow.start_run(run_name=run_name, tags=tags, nested=bool(parent_run_id)) as run:
        mlflow.log_params(params.to_dataframe().iloc[0].to_dict())
        mlflow.log_dict(OmegaConf.to_container(cfg), "config.yaml")

        result = run_scenario(params, properties, exporter=lambda r: export_csv(r, Path(cfg.export_dir)))

        numeric = {k: float(v) for k, v in result.coefficients.items() if isinstance(v, (int, float))}
        mlflow.log_metrics(numeric)
        mlflow.log_metrics(result.metrics.to_dataframe().iloc[0].to_dict())

        with tempfile.TemporaryDirectory() as tmpdir:
            csv_path = Path(tmpdir) / "snapshots.csv"
            result.snapshots_dataframe().to_csv(csv_path, index=False)
            mlflow.log_artifact(str(csv_path))

        log.info(
            f"Done: {result.metrics.steps_taken} steps, {result.metrics.n_unknowns} unknowns, "
            f"time={result.metrics.wall_time_seconds:.2f}s"
        )
        return run.info.run_id


@hydra.main(config_path="conf", config_name="config", version_base=None)
def main(cfg: DictConfig) -> None:
    """Main entry point."""
    log.info(f"Scenario: {cfg.scenario}, grid={cfg.grid_type}, scheme={cfg.interp_scheme}, mesh={cfg.mesh}")
    log.info(f"MLflow experiment: {setup_mlflow(cfg)}")
    try:
        run_solver(cfg)
    except PoroelasticityError as e:
        log.error(f"{type(e).__name__}: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
