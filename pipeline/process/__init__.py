"""Batch processing and run statistics."""

from .batch import BatchProcessor, BatchResult
from .statistics import RunStatistics, summarize

__all__ = ['BatchProcessor', 'BatchResult', 'RunStatistics', 'summarize']
