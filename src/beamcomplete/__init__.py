"""
beamcomplete - Model-backed code completion for Apache Beam pipelines.
"""

__version__ = "0.1.0"
__author__ = "beamcomplete contributors"

from beamcomplete.completion import BeamCompletionContributor, CompletionService
from beamcomplete.cli.commands import main

__all__ = ["BeamCompletionContributor", "CompletionService", "main", "__version__"]
