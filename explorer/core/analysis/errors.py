"""
Engine Errors — Typed Failures
================================
Raised inside the analysis engine and converted into result objects at the
session boundary, so callers always receive a descriptive outcome.

  ExplorerError               — base class
  InputError                  — empty dataset, unknown column/method, wrong column type
  DegenerateComputationError  — a statistic has no valid source values
"""


class ExplorerError(Exception):
    """Base class for all engine failures."""

    error_type = "explorer_error"

    def __init__(self, message: str, column: str = None):
        super().__init__(message)
        self.message = message
        self.column = column

    def to_dict(self):
        return {
            "error_type": self.error_type,
            "message": self.message,
            "column": self.column,
        }


class InputError(ExplorerError):
    error_type = "input_error"


class DegenerateComputationError(ExplorerError):
    error_type = "degenerate_computation"
