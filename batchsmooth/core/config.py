"""Configuration for batch correction."""

from dataclasses import dataclass
from typing import Any

from .validators import check_numeric_scalar, check_positive_int

DEFAULT_SIGMA = 0.1
DEFAULT_BLOCK_SIZE = 512
DEFAULT_N_JOBS = 1
# Upper bound on (query samples x reference samples) held per chunk.
DEFAULT_BUFFER_ELEMENTS = 2**22


@dataclass
class CorrectionConfig:
    """Correction config.

    Attributes
    ----------
    sigma : float
        Squared bandwidth of the Gaussian kernel, used as ``exp(-d2 / sigma)``.
    var_adj : bool
        Whether to rescale correction vectors by quantile matching.
    n_jobs : int
        1 = sequential, -1 = all cores, >1 = that many worker threads.
    block_size : int
        Number of matrix columns read at once.
    """

    sigma: float = DEFAULT_SIGMA
    var_adj: bool = True
    n_jobs: int = DEFAULT_N_JOBS
    block_size: int = DEFAULT_BLOCK_SIZE

    def __post_init__(self):
        self.sigma = check_numeric_scalar(self.sigma, "sigma")
        self.n_jobs = check_positive_int(self.n_jobs, "n_jobs", allow_all=True)
        self.block_size = check_positive_int(self.block_size, "block_size")
        self.var_adj = bool(self.var_adj)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return dict(self.__dict__)
