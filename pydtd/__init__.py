"""
pydtd - loss-function based deconvolution in Python

pydtd learns a per-feature weight vector g that makes a weighted least squares
deconvolution of mixtures reproduce known compositions as well as possible. The
weights are trained with FISTA on the negative mean correlation between the
estimated and the true composition, with an L1 penalty on g.
"""

__version__ = "0.3.0"

# Make key classes available at package level
from .core_functionality.estimation import (
    EstimatorMode, estimate_composition, estimate_direct, estimate_nonneg
)
from .core_functionality.thresholding import soft_threshold
from .core_functionality.correlation_model import CorrelationModel
from .core_functionality.fista import FistaConfig, FistaOptimizer
from .core_functionality.training_result import TerminationReason, TrainingResult
from .core_functionality.cross_validation import CrossValidationResult, cross_validate_lambda
from .core_functionality.exceptions import (
    DTDError, InvalidArgument, DataError, NumericalError, SingularMatrix, DidNotConverge,
    DegenerateCorrelation, TrainingAborted, DegenerateCorrelationWarning, ModeConflictWarning
)
