"""
Per-frame processing for the target detection node.

- InferenceOrchestrator: ingestion up to the asynchronous accelerator submission
- ResultMapper: accelerator callback to published OutputFrame
"""

from .orchestrator import InferenceOrchestrator, IngestStats
from .result_mapper import ResultMapper, ResultStats

__all__ = [
    "InferenceOrchestrator",
    "IngestStats",
    "ResultMapper",
    "ResultStats",
]
