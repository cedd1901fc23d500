class PlannerError(Exception):
    """Base class for errors raised inside the planning engine."""


class InvalidInputError(PlannerError):
    """Raised when an input cannot describe a deployment (e.g. negative VRAM)."""


class ComputationError(PlannerError):
    """Raised when a heuristic produces a value that cannot be used (NaN, negative, infinite)."""
