"""
Central configuration for the graphical multiple testing library.
"""

# --- Statistical Parameters ---

# Default family-wise significance level (alpha) for the closed test.
SIGNIFICANCE_ALPHA: float = 0.05

# Value substituted for symbolic epsilon edges before the closure is built.
EPSILON: float = 1e-3

# Rescale the local weights of every intersection hypothesis to sum to one.
UPSCALE: bool = False

# Compute adjusted p-values by default. Some weighted tests (trimmed Simes)
# can only return a rejection decision and require ADJUSTED_PVALUES=False.
ADJUSTED_PVALUES: bool = True

# --- Closure Size ---

# Upper bound on the number of elementary hypotheses. The closure has
# 2**n - 1 intersection hypotheses, so the cost doubles with every node.
MAX_HYPOTHESES: int = 20

# --- Entangled Graphs ---

# Allowed deviation of sum(split) from one.
SPLIT_TOLERANCE: float = 1e-8

# --- Parametric Test ---

# Absolute / relative error tolerance for the multivariate normal CDF
# integration in the weighted parametric test.
PARAMETRIC_ABSEPS: float = 1e-5
PARAMETRIC_RELEPS: float = 1e-5

# Seed of the quasi-Monte Carlo integration, so repeated closed tests give
# identical adjusted p-values.
PARAMETRIC_SEED: int = 20110601

# --- Parallelism ---

# Environment variable overriding the number of joblib workers used to
# evaluate intersection hypotheses (e.g. "1" to force sequential runs).
N_JOBS_ENV_VAR: str = "GRAPHICAL_MCP_N_JOBS"

# Closures with fewer intersection hypotheses are always evaluated
# sequentially.
MIN_SUBSETS_FOR_PARALLEL: int = 256
