"""Material models: raw properties to derived poroelastic coefficients."""

from .base import PoroelasticMaterial
from .double_porosity import DoublePorosityMaterial
from .properties import load_properties, parse_properties
from .single_porosity import SinglePorosityMaterial

__all__ = [
    "PoroelasticMaterial",
    "SinglePorosityMaterial",
    "DoublePorosityMaterial",
    "load_properties",
    "parse_properties",
]
