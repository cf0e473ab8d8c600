"""Orchestrator package - coordinates upload workflows."""
from .core import UploadOrchestrator
from .batch_upload import BatchUploadHandler, BatchUploadProcess, ProcessState
from .models import BatchResult

__all__ = [
    "UploadOrchestrator",
    "BatchUploadHandler",
    "BatchUploadProcess",
    "ProcessState",
    "BatchResult",
]
