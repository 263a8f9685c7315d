"""
CLI module for beamcomplete - command-line interface and terminal output.
"""

from beamcomplete.cli import ui
from beamcomplete.cli.commands import main

__all__ = ["main", "ui"]
