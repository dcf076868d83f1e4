"""lytt-bridge command line.

Registers all commands on the main group.
"""

from lytt_bridge.cli.main import cli
from lytt_bridge.cli.serve import serve
from lytt_bridge.cli.transcribe import transcribe

__all__ = [
    "cli",
    "serve",
    "transcribe",
]
