"""
Scenario pipeline: grid -> material -> assemblers -> solver -> export.

Each stage reads what it needs from a `SimulationContext` and adds its own
product to it, so stages can be run and inspected one at a time. Runs share
no mutable state; independent scenarios can be executed side by side.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

import numpy as np
import pandas as pd
from scipy.sparse import csr_matrix

from .assembly import (
    AssemblyStrategy,
    BoundaryConditions,
    CoefficientAssembler,
    DiscretizationConstants,
    RHSAssembler,
    create_strategy,
    strategy_class,
)
from .datastructures import Fields, GridParameters, MaterialProperties, Metrics, ScenarioParameters, Snapshot, Variable
from .errors import ConfigurationError
from .materials import DoublePorosityMaterial, PoroelasticMaterial, SinglePorosityMaterial
from .meshing import Grid, create_grid
from .scenarios import PLATE_UNDRAINED, UNDRAINED, ScenarioDescriptor, get_scenario
from .solver import TimeSteppingSolver

log = logging.getLogger(__name__)


@dataclass
class SimulationContext:
    """State accumulated by the pipeline stages of one run."""

    params: ScenarioParameters
    properties: MaterialProperties
    descriptor: ScenarioDescriptor
    material: Optional[PoroelasticMaterial] = None
    grid: Optional[Grid] = None
    bcs: Optional[BoundaryConditions] = None
    constants: Optional[DiscretizationConstants] = None
    strategy: Optional[AssemblyStrategy] = None
    special_loads: tuple = ()
    matrix: Optional[csr_matrix] = None
    rhs: Optional[RHSAssembler] = None
    initial: Optional[Fields] = None
    solver: Optional[TimeSteppingSolver] = None
    assembly_seconds: float = 0.0


@dataclass
class RunResult:
    """What a run hands to the exporter."""

    params: ScenarioParameters
    grid: Grid
    coefficients: Dict[str, float]
    fields: Fields
    snapshots: List[Snapshot]
    metrics: Metrics

    def snapshots_dataframe(self) -> pd.DataFrame:
        if not self.snapshots:
            return pd.DataFrame(columns=["variable", "x", "y", "value", "time_step", "time"])
        return pd.concat([s.to_dataframe() for s in self.snapshots], ignore_index=True)

    def coefficients_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame([self.coefficients])


# ========================================================
# Stages
# ========================================================


def build_material(ctx: SimulationContext) -> SimulationContext:
    if ctx.descriptor.double_porosity:
        ctx.material = DoublePorosityMaterial(ctx.properties)
    else:
        ctx.material = SinglePorosityMaterial(ctx.properties)
    log.info(f"Material: {ctx.material!r}")
    return ctx


def build_grid(ctx: SimulationContext) -> SimulationContext:
    p = ctx.params
    Lx, Ly, Nx, Ny = ctx.descriptor.domain(p.mesh)
    if p.total_time is not None:
        Lt = p.total_time
    else:
        h = min(Lx / Nx, Ly / Ny)
        Lt = (p.Nt - 1) * p.time_step_fraction * ctx.material.characteristic_time(h)
    ctx.grid = create_grid(
        GridParameters(
            Lx=Lx,
            Ly=Ly,
            Nx=Nx,
            Ny=Ny,
            Lt=Lt,
            Nt=p.Nt,
            grid_type=p.grid_type,
            double_porosity=ctx.descriptor.double_porosity,
        )
    )
    if ctx.grid.dt < ctx.material.minimum_time_step(ctx.grid.h):
        log.warning(
            f"dt={ctx.grid.dt:.4e} is below the oscillation-free minimum "
            f"{ctx.material.minimum_time_step(ctx.grid.h):.4e}"
        )
    return ctx


def build_assemblers(ctx: SimulationContext) -> SimulationContext:
    p = ctx.params
    shape_factor = ctx.descriptor.shape_factor if p.shape_factor is None else p.shape_factor
    ctx.bcs = ctx.descriptor.boundary_conditions(p.load, ctx.material.fluid_density * p.gravity)
    ctx.constants = DiscretizationConstants.from_material(
        ctx.material, ctx.grid.dt, gravity=p.gravity, shape_factor=shape_factor
    )
    ctx.strategy = create_strategy(ctx.grid, ctx.bcs, ctx.constants, p.interp_scheme)
    ctx.special_loads = tuple(ctx.descriptor.special_loads(p.mesh, ctx.grid, p.load))

    start = time.perf_counter()
    ctx.matrix = CoefficientAssembler(ctx.strategy, ctx.special_loads).assemble()
    ctx.rhs = RHSAssembler(ctx.strategy, ctx.special_loads)
    ctx.assembly_seconds = time.perf_counter() - start
    return ctx


def initial_fields(grid: Grid, material: PoroelasticMaterial, mode: str, load: float) -> Fields:
    """Zero fields, or the undrained state right after `load` is applied.

    ``"undrained"`` is a laterally confined column, ``"plate_undrained"`` a
    medium free to expand sideways under a rigid plate.
    """
    fields = grid.zero_fields()
    if mode == UNDRAINED:
        strain_xx = 0.0
        strain_yy, pressures = material.undrained_response(load)
    elif mode == PLATE_UNDRAINED:
        strain_xx, strain_yy, pressures = material.plate_undrained_response(load)
    else:
        return fields
    x0, y0 = grid.params.origin
    fields.u[:] = strain_xx * (grid.lattices[Variable.U].coordinates[:, 0] - x0)
    fields.v[:] = strain_yy * (grid.lattices[Variable.V].coordinates[:, 1] - y0)
    for kind, pressure in zip(grid.pressure_kinds, pressures):
        fields.get(kind)[:] = pressure
    return fields


def build_solver(ctx: SimulationContext) -> SimulationContext:
    ctx.initial = initial_fields(ctx.grid, ctx.material, ctx.descriptor.initial_condition, ctx.params.load)
    ctx.solver = TimeSteppingSolver(
        ctx.grid,
        ctx.matrix,
        ctx.rhs,
        initial=ctx.initial,
        export_steps=ctx.descriptor.exported_steps(ctx.params.Nt),
    )
    ctx.solver.metrics.assembly_seconds = ctx.assembly_seconds
    return ctx


# ========================================================
# Driver
# ========================================================


def validate(params: ScenarioParameters) -> ScenarioDescriptor:
    """Resolve names up front so configuration errors precede any assembly work."""
    descriptor = get_scenario(params.scenario)
    strategy_class(params.grid_type, params.interp_scheme)
    return descriptor


def prepare(params: ScenarioParameters, properties: MaterialProperties) -> SimulationContext:
    """Run every stage up to a factorization-ready solver."""
    ctx = SimulationContext(params=params, properties=properties, descriptor=validate(params))
    for stage in (build_material, build_grid, build_assemblers, build_solver):
        ctx = stage(ctx)
    return ctx


def run_scenario(
    params: ScenarioParameters,
    properties: MaterialProperties,
    exporter: Optional[Callable[[RunResult], None]] = None,
) -> RunResult:
    """Run one benchmark configuration end to end.

    Parameters
    ----------
    params : ScenarioParameters
        Scenario name, topology, scheme, resolution and loading.
    properties : MaterialProperties
        Medium properties.
    exporter : callable, optional
        Receives the `RunResult`; its return value is ignored.

    Returns
    -------
    RunResult
        Final fields, exported snapshots, derived coefficients and metrics.
    """
    if not isinstance(params, ScenarioParameters):
        raise ConfigurationError(f"Expected ScenarioParameters, got {type(params).__name__}")
    log.info(
        f"Running {params.scenario} on a {params.grid_type.value} grid "
        f"({params.interp_scheme.value}), mesh={params.mesh}, Nt={params.Nt}"
    )
    ctx = prepare(params, properties)
    fields = ctx.solver.run()

    coefficients = dict(ctx.material.coefficients())
    coefficients.update(
        {
            "dx": ctx.grid.dx,
            "dy": ctx.grid.dy,
            "dt": ctx.grid.dt,
            "Lx": ctx.grid.Lx,
            "Ly": ctx.grid.Ly,
            "load": params.load,
            "leakage": ctx.constants.leakage,
            "undrained_strain": ctx.material.undrained_response(params.load)[0],
        }
    )
    for kind, pressure in zip(ctx.grid.pressure_kinds, ctx.material.undrained_response(params.load)[1]):
        coefficients[f"undrained_{kind.name.lower()}"] = pressure

    result = RunResult(
        params=params,
        grid=ctx.grid,
        coefficients=coefficients,
        fields=fields,
        snapshots=ctx.solver.snapshots,
        metrics=ctx.solver.metrics,
    )
    if exporter is not None:
        exporter(result)
    log.info(f"Finished {params.scenario}: max|p|={np.abs(fields.p).max():.4e}")
    return result
