import numpy as np

# Null values used by the demos to mark grid cells without a known sample.
NULL_VALUE = -1.0
FAR_NULL_VALUE = -999.0
# Internal "not yet assigned" marker for seeded grids.
PNULL = -float(np.finfo(np.float32).max)

RANDOM_SEED = 314159

# Known samples must survive blending to within this tolerance.
KNOWN_SAMPLE_TOLERANCE = 1.0e-5

# Tensor builders offset their centre so no cell sits exactly on it.
TENSOR_CENTER = 0.01
COHERENCE_MAX = 0.99

# Local smoothing (blended gridder) conjugate-gradient limits.
SMOOTHING_RTOL = 0.01
SMOOTHING_MAXITER = 10000

# Splines gridder conjugate-gradient limits.
SPLINES_SMALL = 1.0e-4
SPLINES_MAXITER = 10000

# Smallest eigenvalue admitted when inverting diffusion tensors.
EIGENVALUE_FLOOR = 1.0e-6

DEFAULT_GRID = "fine"
