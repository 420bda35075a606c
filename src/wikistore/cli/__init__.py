"""wikistore CLI — read and edit documents in a versioned bare git repo."""

from ._helpers import main  # noqa: F401 — entry point

# Import command modules to register Click commands with the main group.
from . import _basic  # noqa: F401
