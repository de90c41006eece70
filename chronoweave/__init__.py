"""
chronoweave - branching, patch-based state history

Records a sequence of application states compactly, walks backward and
forward through them (undo/redo), and forks independent branches of
history from any past point.
"""

__version__ = "0.1.0"

# Configuration is available at top level for convenience
from chronoweave.config import config

__all__ = ["config", "__version__"]
