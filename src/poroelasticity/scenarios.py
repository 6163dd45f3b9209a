"""
Declarative benchmark scenarios.

A scenario descriptor carries everything that differs between benchmarks:
the domain for a mesh multiplier, the boundary condition table, the
porosity model, the initial condition, any special loads and the export
schedule. The pipeline does the rest identically for all of them.

Boundary tables list sides N, W, S, E and columns u, v, p (, p_frac) with
type codes 1 (Dirichlet), 0 (Neumann) and -1 (Stress / Darcy flux).
Neumann values are outward normal derivatives, so a hydrostatic pressure
(dp/dy = -rho_f g) reads -rho_f g on the north side and +rho_f g on the
south side.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, Tuple

from .assembly import BoundaryConditions, RigidPlateLoad, StripLoad
from .datastructures import Side
from .errors import ConfigurationError

ZERO = "zero"
UNDRAINED = "undrained"
PLATE_UNDRAINED = "plate_undrained"


# ========================================================
# Export schedules
# ========================================================


def fractional_steps(*divisors):
    """Step 1, (Nt-1)/d for every divisor d, and the last step."""

    def schedule(last):
        return (1, *(last // d for d in divisors), last)

    return schedule


def fixed_steps(*steps):
    """Given steps that fall inside the run, and the last step."""

    def schedule(last):
        return (*steps, last)

    return schedule


def exported_steps(Nt: int, schedule: Callable = fractional_steps(8, 2)) -> Tuple[int, ...]:
    """Time steps handed to the exporter; only step 1 for a single-step run."""
    if Nt == 2:
        return (1,)
    last = Nt - 1
    return tuple(sorted({s for s in schedule(last) if 1 <= s <= last}))


@dataclass(frozen=True)
class ScenarioDescriptor:
    """Benchmark definition independent of grid topology and scheme.

    Parameters
    ----------
    name : str
        Scenario key.
    domain : callable
        ``domain(mesh) -> (Lx, Ly, Nx, Ny)``.
    boundary : callable
        ``boundary(load, fluid_weight) -> (types, values)`` per-side tables.
    double_porosity : bool
        Whether a fracture pressure field is carried.
    initial_condition : str
        ``"zero"``, ``"undrained"`` (confined column right after loading) or
        ``"plate_undrained"`` (laterally free medium right after a plate load).
    shape_factor : float
        Leakage shape factor of double-porosity media.
    special_loads : callable
        ``special_loads(mesh, grid, load) -> tuple`` of loads editing boundary rows.
    export_schedule : callable
        ``export_schedule(last_step) -> steps``; steps outside the run are dropped.
    """

    name: str
    domain: Callable
    boundary: Callable
    double_porosity: bool = False
    initial_condition: str = ZERO
    shape_factor: float = 0.0
    special_loads: Callable = field(default=lambda mesh, grid, load: ())
    export_schedule: Callable = fractional_steps(8, 2)

    def boundary_conditions(self, load, fluid_weight) -> BoundaryConditions:
        types, values = self.boundary(load, fluid_weight)
        return BoundaryConditions.from_lists(types, values)

    def exported_steps(self, Nt: int) -> Tuple[int, ...]:
        return exported_steps(Nt, self.export_schedule)


# ========================================================
# Domains
# ========================================================


def column_domain(mesh):
    return 1.0, 6.0, mesh, 6 * mesh


def square_domain(mesh):
    return 5.0, 5.0, 5 * mesh, 5 * mesh


# ========================================================
# Boundary tables
# ========================================================


def sealed_column_bc(load, fluid_weight):
    types = [[-1, -1, 0], [1, -1, -1], [-1, 1, 0], [1, -1, -1]]
    values = [[0, load, -fluid_weight], [0, 0, 0], [0, 0, fluid_weight], [0, 0, 0]]
    return types, values


def terzaghi_bc(load, fluid_weight):
    types = [[-1, -1, 1], [1, -1, -1], [-1, 1, 0], [1, -1, -1]]
    values = [[0, load, 0], [0, 0, 0], [0, 0, fluid_weight], [0, 0, 0]]
    return types, values


def mandel_bc(load, fluid_weight):
    # Symmetry planes west and south, drained east; the plate load acts on north
    types = [[-1, -1, 0], [1, -1, -1], [-1, 1, 0], [-1, -1, 1]]
    values = [[0, 0, -fluid_weight], [0, 0, 0], [0, 0, fluid_weight], [0, 0, 0]]
    return types, values


def strip_footing_bc(load, fluid_weight):
    types = [[-1, -1, -1], [1, -1, -1], [-1, 1, -1], [1, -1, -1]]
    values = [[0, 0, 0], [0, 0, 0], [0, 0, 0], [0, 0, 0]]
    return types, values


def terzaghi_double_bc(load, fluid_weight):
    types = [[-1, -1, 1, 1], [1, -1, -1, -1], [-1, 1, -1, -1], [1, -1, -1, -1]]
    values = [[0, load, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0]]
    return types, values


def sealed_double_bc(load, fluid_weight):
    types = [[-1, -1, -1, -1], [1, -1, -1, -1], [-1, 1, -1, -1], [1, -1, -1, -1]]
    values = [[0, load, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0]]
    return types, values


def strip_footing_double_bc(load, fluid_weight):
    types = [[-1, -1, -1, -1], [1, -1, -1, -1], [-1, 1, -1, -1], [1, -1, -1, -1]]
    values = [[0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0]]
    return types, values


# ========================================================
# Special loads
# ========================================================


def north_strip(mesh, grid, load):
    """Drained strip of `mesh` cells at the west end of the north side."""
    return (StripLoad(side=Side.NORTH, width=mesh * grid.dx, traction=load, drained=True),)


def north_plate(mesh, grid, load):
    """Rigid plate over the whole north side carrying `load` on average."""
    return (RigidPlateLoad(side=Side.NORTH, force=load * grid.Lx),)


# ========================================================
# Registry
# ========================================================

LEAKING_SHAPE_FACTOR = 11.0

SCENARIOS: Dict[str, ScenarioDescriptor] = {
    s.name: s
    for s in (
        ScenarioDescriptor("sealed_column", column_domain, sealed_column_bc),
        ScenarioDescriptor("terzaghi", column_domain, terzaghi_bc, initial_condition=UNDRAINED),
        ScenarioDescriptor(
            "mandel",
            square_domain,
            mandel_bc,
            initial_condition=PLATE_UNDRAINED,
            special_loads=north_plate,
            export_schedule=fractional_steps(16, 4),
        ),
        # Starts from rest: the confined-column undrained state does not hold under a strip
        ScenarioDescriptor("strip_footing", square_domain, strip_footing_bc, special_loads=north_strip),
        ScenarioDescriptor(
            "terzaghi_double",
            column_domain,
            terzaghi_double_bc,
            double_porosity=True,
            shape_factor=LEAKING_SHAPE_FACTOR,
        ),
        ScenarioDescriptor(
            "sealed_double",
            column_domain,
            sealed_double_bc,
            double_porosity=True,
            shape_factor=LEAKING_SHAPE_FACTOR,
            export_schedule=fixed_steps(),
        ),
        ScenarioDescriptor(
            "strip_footing_double",
            square_domain,
            strip_footing_double_bc,
            double_porosity=True,
            shape_factor=LEAKING_SHAPE_FACTOR,
            special_loads=north_strip,
        ),
        ScenarioDescriptor(
            "storage_double",
            column_domain,
            terzaghi_double_bc,
            double_porosity=True,
            initial_condition=UNDRAINED,
            shape_factor=0.0,
            export_schedule=fixed_steps(1, 2, 3, 4, 125, 250, 500),
        ),
        ScenarioDescriptor(
            "leaking_double",
            column_domain,
            terzaghi_double_bc,
            double_porosity=True,
            initial_condition=UNDRAINED,
            shape_factor=LEAKING_SHAPE_FACTOR,
            export_schedule=fixed_steps(1, 62, 125, 500),
        ),
    )
}


def get_scenario(name: str) -> ScenarioDescriptor:
    try:
        return SCENARIOS[name]
    except KeyError:
        raise ConfigurationError(f"Unknown scenario: {name!r} (available: {', '.join(SCENARIOS)})") from None
