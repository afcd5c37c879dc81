"""
evalgrid - Batch benchmark evaluation.

Run an evaluation program over a suite x level matrix, scrape the
results from its logs, and summarize them.
"""

from evalgrid.config import EvaluationConfig, load_config
from evalgrid.orchestrator import MatrixOrchestrator

__version__ = "0.1.0"
__all__ = ["EvaluationConfig", "MatrixOrchestrator", "load_config", "__version__"]
