"""smartcopy CLI: incremental, hash-checked directory copies."""

from ._helpers import main  # noqa: F401  (entry point)

# Import command modules to register Click commands with the main group.
from . import _analyze, _diff, _copy  # noqa: F401
