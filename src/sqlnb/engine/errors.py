"""Error taxonomy for notebook execution.

Only the controller turns these into failed cell runs; everything below it
raises them.
"""

from __future__ import annotations


class NotebookError(Exception):
    """Base class for all sqlnb errors."""


class ConfigurationError(NotebookError):
    """No usable pool is configured."""


class PoolNotConfiguredError(ConfigurationError):
    """The pool was never opened or has already been ended."""


class PoolExhaustedError(ConfigurationError):
    """Every connection in the pool is checked out."""


class QueryError(NotebookError):
    """The database rejected a statement. The connection is still usable."""


class CancellationError(NotebookError):
    """The user cancelled a query while it was outstanding."""


class InternalError(NotebookError):
    """A programming defect, such as an unknown document dialect."""
