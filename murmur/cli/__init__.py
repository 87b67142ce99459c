"""murmur CLI.

Registers all commands on the main group.
"""

from murmur.cli.main import cli
from murmur.cli.transcribe import transcribe

__all__ = ["cli", "transcribe"]
