"""Error taxonomy for the poroelasticity engine.

None of these failures is transient: a run that raises one of them is
aborted, independent runs are unaffected.
"""


class PoroelasticityError(Exception):
    """Base class for all errors raised by the engine."""


class ConfigurationError(PoroelasticityError, ValueError):
    """Invalid or missing scenario parameters, detected before assembly."""


class AssemblyError(PoroelasticityError, RuntimeError):
    """A row could not be assembled (missing boundary entry, unreached DOF)."""


class FactorizationError(PoroelasticityError, RuntimeError):
    """The coefficient matrix could not be factorized."""


class SolveError(PoroelasticityError, RuntimeError):
    """A time-step solve failed or was requested in an invalid state."""
