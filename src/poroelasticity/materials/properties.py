"""Reading porous-medium property files."""

import logging
from pathlib import Path

from ..datastructures import MaterialProperties
from ..errors import ConfigurationError

log = logging.getLogger(__name__)

# Field order of the numeric block following the header line
PROPERTY_FIELDS = (
    "shear_modulus",
    "bulk_modulus",
    "solid_bulk_modulus",
    "solid_density",
    "fluid_bulk_modulus",
    "porosity",
    "permeability",
    "fluid_viscosity",
    "fluid_density",
)


def parse_properties(text: str, name: str) -> MaterialProperties:
    """Parse a property file body: a header line then nine whitespace-separated numbers."""
    lines = text.splitlines()
    if not lines:
        raise ConfigurationError(f"Property file for {name!r} is empty")
    tokens = " ".join(lines[1:]).split()
    if len(tokens) < len(PROPERTY_FIELDS):
        raise ConfigurationError(
            f"Property file for {name!r} has {len(tokens)} values, expected {len(PROPERTY_FIELDS)}"
        )
    try:
        values = [float(tok) for tok in tokens[: len(PROPERTY_FIELDS)]]
    except ValueError as e:
        raise ConfigurationError(f"Property file for {name!r} is malformed: {e}") from e
    return MaterialProperties(name=name, **dict(zip(PROPERTY_FIELDS, values)))


def load_properties(medium: str, input_dir="input") -> MaterialProperties:
    """Load `<input_dir>/<medium>.txt`; the medium name overrides the header line."""
    path = Path(input_dir) / f"{medium}.txt"
    if not path.is_file():
        raise ConfigurationError(f"Unable to open properties file: {path}")
    props = parse_properties(path.read_text(), name=medium)
    log.info(f"Loaded properties for {medium} from {path}")
    return props
