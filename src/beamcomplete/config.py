"""
Configuration management for beamcomplete.

Loads settings from environment variables and provides configuration objects.
"""

import os
from dataclasses import dataclass
from typing import Optional

from beamcomplete.inference.config import InferenceConfig
from beamcomplete.inference.request import Parameters


@dataclass
class Config:
    """beamcomplete configuration."""

    api_key: Optional[str] = None
    model: str = InferenceConfig.DEFAULT_MODEL
    temperature: float = InferenceConfig.DEFAULT_TEMPERATURE
    do_sample: bool = InferenceConfig.DEFAULT_DO_SAMPLE
    timeout: float = InferenceConfig.DEFAULT_TIMEOUT
    log_level: str = "INFO"
    log_dir: Optional[str] = None

    def __init__(self):
        """Initialize config from environment variables."""
        self.api_key = os.getenv(InferenceConfig.API_KEY_ENV)
        self.model = os.getenv("BEAMCOMPLETE_MODEL", InferenceConfig.DEFAULT_MODEL)
        self.temperature = float(
            os.getenv("BEAMCOMPLETE_TEMPERATURE", str(InferenceConfig.DEFAULT_TEMPERATURE))
        )
        self.do_sample = os.getenv("BEAMCOMPLETE_DO_SAMPLE", "false").lower() == "true"
        self.timeout = float(os.getenv("BEAMCOMPLETE_TIMEOUT", str(InferenceConfig.DEFAULT_TIMEOUT)))
        self.log_level = os.getenv("BEAMCOMPLETE_LOG_LEVEL", "INFO")
        self.log_dir = os.getenv("BEAMCOMPLETE_LOG_DIR")

    @property
    def model_url(self) -> str:
        return InferenceConfig.resolve_model_url(self.model)

    def parameters(self) -> Parameters:
        return Parameters(temperature=self.temperature, do_sample=self.do_sample)
