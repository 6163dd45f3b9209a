"""Resolution of the (topology, scheme) pair to an assembly strategy."""

from ..datastructures import GridType, InterpolationScheme
from ..errors import ConfigurationError
from .collocated import CollocatedPISStrategy, CollocatedStrategy
from .staggered import StaggeredStrategy

STRATEGIES = {
    (GridType.STAGGERED, InterpolationScheme.NONE): StaggeredStrategy,
    (GridType.COLLOCATED, InterpolationScheme.CDS): CollocatedStrategy,
    (GridType.COLLOCATED, InterpolationScheme.I2DPIS): CollocatedPISStrategy,
}


def strategy_class(grid_type, scheme):
    grid_type = GridType.parse(grid_type)
    scheme = InterpolationScheme.parse(scheme)
    try:
        return STRATEGIES[(grid_type, scheme)]
    except KeyError:
        supported = ", ".join(f"{g.value}/{s.value}" for g, s in STRATEGIES)
        raise ConfigurationError(
            f"Unsupported grid/scheme combination {grid_type.value}/{scheme.value} (supported: {supported})"
        ) from None


def create_strategy(grid, bcs, constants, scheme):
    """Instantiate the strategy for the grid's topology and the given scheme."""
    return strategy_class(grid.grid_type, scheme)(grid, bcs, constants)
