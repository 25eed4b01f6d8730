"""treevault CLI: import file trees into a vault."""

from ._helpers import main  # noqa: F401 (entry point)

# Import command modules to register Click commands with the main group.
from . import _basic, _import  # noqa: F401
