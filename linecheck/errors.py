"""Exceptions raised by linecheck."""
from typing import Any, Optional


class LineCheckError(Exception):
    """Base class for linecheck errors."""


class PipelineError(LineCheckError):
    """A pipeline run could not produce a comparison."""

    def __init__(self, message: str, result: Optional[Any] = None):
        super().__init__(message)
        self.result = result
