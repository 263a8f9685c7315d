"""
Base inference client interface.

All code-completion inference backends must implement this interface.
"""

from abc import ABC, abstractmethod
from typing import Optional

from beamcomplete.inference.request import Parameters
from beamcomplete.inference.response import InferenceResponse


class BaseInferenceClient(ABC):
    """
    Abstract base class for inference backends.

    Clients must implement:
    - complete(): Send a code prefix and get the generated continuation
    - has_credentials(): Whether a request can be dispatched at all
    """

    @abstractmethod
    def complete(
        self,
        code_prefix: str,
        parameters: Optional[Parameters] = None,
    ) -> InferenceResponse:
        """
        Request a completion for the given source prefix.

        Args:
            code_prefix: File text up to the caret
            parameters: Sampling parameters (client default if omitted)

        Returns:
            InferenceResponse

        Raises:
            InferenceError: If the request fails
        """
        pass

    @abstractmethod
    def has_credentials(self) -> bool:
        """Check if the client is able to authenticate"""
        pass

    @property
    @abstractmethod
    def model_url(self) -> str:
        """Endpoint the client posts to"""
        pass

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Get the provider name (e.g., 'huggingface')"""
        pass

    def close(self) -> None:
        """Release pooled connections. Override if the client holds any."""
        return None


# Exceptions
class InferenceError(Exception):
    """Base exception for inference-related errors"""

    pass


class InferenceAPIError(InferenceError):
    """Raised when the API call fails"""

    pass


class InferenceAuthenticationError(InferenceError):
    """Raised when the API key is invalid or missing"""

    pass


class InferenceRateLimitError(InferenceError):
    """Raised when rate limit is exceeded"""

    pass


class InferenceTimeoutError(InferenceError):
    """Raised when the endpoint does not answer in time"""

    pass


class InferenceCancelledError(InferenceError):
    """Raised when a request was cancelled before its result was used"""

    pass
