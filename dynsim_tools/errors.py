"""
# Errors

Exception types raised by dynsim_tools.

## Classes

- `DynsimError`: Base class for every error raised by the toolkit
- `ConfigurationError`: Invalid input shape or bounds, raised before any simulation starts
- `IntegrationFailure`: The ODE integrator did not converge for one parameter sample
- `FailureToleranceExceeded`: Too many samples failed for the indices to be trusted

Numerical instability of the explicit diffusion stepper is not an error and
has no exception type; it shows up only as implausible output values.
"""


class DynsimError(Exception):
    """Base class for dynsim_tools errors."""


class ConfigurationError(DynsimError, ValueError):
    """
    Invalid configuration value.

    Attributes:
        field (str): Name of the offending configuration field.
    """
    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"{field}: {message}")


class IntegrationFailure(DynsimError, RuntimeError):
    """
    The integrator could not produce a trajectory for a parameter set.

    Raised when the step budget or timeout is exhausted, the solver reports
    failure, or the state becomes non-finite. The model-evaluation wrapper
    catches it per sample.
    """


class FailureToleranceExceeded(DynsimError):
    """
    Raised when the fraction of failed samples exceeds the configured tolerance.

    Attributes:
        report (FailureReport): The failure report that triggered the refusal.
    """
    def __init__(self, report, tolerance: float):
        self.report = report
        self.tolerance = tolerance
        super().__init__(
            f"{report.count} of {report.total} samples failed "
            f"(rate {report.rate:.3f} > tolerance {tolerance:.3f})"
        )
