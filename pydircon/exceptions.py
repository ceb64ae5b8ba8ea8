"""
Exceptions and warnings raised while building and evaluating hybrid trajectory optimization problems

October 19, 2026
"""

class ConfigurationError(ValueError):
    """Raised when a transcription or constraint set is built with inconsistent sizes or options"""
    pass

class DimensionMismatch(ValueError):
    """Raised when a constraint evaluator receives inputs of the wrong size"""
    pass

class SolverFailure(RuntimeWarning):
    """Issued when the solver halts without a feasible or optimal solution"""
    pass
