"""
Exceptions raised by the Phillips multiplier pipeline.
"""


class PhillipsError(Exception):
    """Base class for pipeline errors."""


class SchemaError(PhillipsError, ValueError):
    """Input file is missing required columns."""

    def __init__(self, missing: list[str], source: str = ""):
        self.missing = list(missing)
        self.source = source
        where = f" in {source}" if source else ""
        super().__init__(f"Missing required columns{where}: {self.missing}")


class DataValidationError(PhillipsError, ValueError):
    """Input data violates an invariant (e.g. a gap in the quarterly index)."""


class EstimationError(PhillipsError):
    """Estimator inputs are invalid."""
