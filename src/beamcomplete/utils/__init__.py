"""
Utilities module - logging.
"""

from beamcomplete.utils.logger import BeamLogger, logger

__all__ = ["BeamLogger", "logger"]
