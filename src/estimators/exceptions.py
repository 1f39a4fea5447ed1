"""Exception classes for model specification and estimation."""


class PowerSimError(Exception):
    """
    Base exception for errors raised by the simulation toolkit.

    Catch this class to handle any package-specific failure:

        try:
            result = estimator.estimate(data, spec)
        except PowerSimError as e:
            print(f"simulation error: {e}")
    """
    pass


class ModelSpecError(PowerSimError, ValueError):
    """
    Raised when a model specification or formula string is malformed.

    This is a pipeline-level error: a bad specification affects every
    replicate of a run, so it is never caught by the simulation driver.
    """
    pass


class EstimationError(PowerSimError, RuntimeError):
    """
    Raised when a regression cannot deliver the coefficient of interest.

    Typical triggers are a rank-deficient design matrix (the variable of
    interest is dropped for collinearity) or a non-finite standard error.
    The simulation driver catches it and drops the affected replicate.
    """
    pass
