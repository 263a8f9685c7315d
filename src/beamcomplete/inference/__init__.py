"""
Inference module - Clients for remote code-completion models.
"""

from beamcomplete.inference.base import (
    BaseInferenceClient,
    InferenceAPIError,
    InferenceAuthenticationError,
    InferenceCancelledError,
    InferenceError,
    InferenceRateLimitError,
    InferenceTimeoutError,
)
from beamcomplete.inference.config import InferenceConfig
from beamcomplete.inference.huggingface_provider import HuggingFaceInferenceClient
from beamcomplete.inference.request import Parameters, RequestBody
from beamcomplete.inference.response import InferenceResponse

__all__ = [
    # Base classes
    "BaseInferenceClient",
    "InferenceError",
    "InferenceAPIError",
    "InferenceAuthenticationError",
    "InferenceCancelledError",
    "InferenceRateLimitError",
    "InferenceTimeoutError",
    # Clients
    "HuggingFaceInferenceClient",
    # Config
    "InferenceConfig",
    # Payload models
    "Parameters",
    "RequestBody",
    "InferenceResponse",
]
