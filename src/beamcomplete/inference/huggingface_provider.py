"""
Hugging Face Inference API client.

Posts the code prefix to a hosted text-generation model (StarCoder by
default) and normalizes the generated continuation.
"""

import os
import time
from typing import Dict, Optional

import requests

from beamcomplete.inference.base import (
    BaseInferenceClient,
    InferenceAPIError,
    InferenceAuthenticationError,
    InferenceRateLimitError,
    InferenceTimeoutError,
)
from beamcomplete.inference.config import InferenceConfig
from beamcomplete.inference.request import Parameters, RequestBody
from beamcomplete.inference.response import InferenceResponse
from beamcomplete.utils.logger import logger


class HuggingFaceInferenceClient(BaseInferenceClient):
    """
    Hugging Face text-generation client.

    One blocking POST per completion; callers that need cancellation run it
    through a CompletionSession.
    """

    def __init__(
        self,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = InferenceConfig.DEFAULT_TIMEOUT,
        parameters: Optional[Parameters] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the client.

        Args:
            model: Alias, repository id or full endpoint URL (default: starcoder)
            api_key: Bearer token (default: HF_API_KEY environment variable)
            timeout: Seconds to wait for the endpoint
            parameters: Default sampling parameters
            session: Optional pre-configured requests session
        """
        self._model_url = InferenceConfig.resolve_model_url(model)
        self.api_key = api_key if api_key is not None else os.getenv(InferenceConfig.API_KEY_ENV)
        self.timeout = timeout
        self.parameters = parameters or Parameters(
            temperature=InferenceConfig.DEFAULT_TEMPERATURE,
            do_sample=InferenceConfig.DEFAULT_DO_SAMPLE,
        )
        self.session = session or requests.Session()

    @property
    def model_url(self) -> str:
        return self._model_url

    @property
    def provider_name(self) -> str:
        return "huggingface"

    def has_credentials(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    def build_request(self, code_prefix: str, parameters: Optional[Parameters] = None) -> RequestBody:
        return RequestBody(inputs=code_prefix, parameters=parameters or self.parameters)

    def headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

    def complete(
        self,
        code_prefix: str,
        parameters: Optional[Parameters] = None,
    ) -> InferenceResponse:
        """
        Send the code prefix to the model endpoint.

        Args:
            code_prefix: File text up to the caret
            parameters: Sampling parameters (client default if omitted)

        Returns:
            InferenceResponse with the echoed prompt stripped

        Raises:
            InferenceAuthenticationError: If no API key is configured or it is rejected
            InferenceRateLimitError: On HTTP 429
            InferenceTimeoutError: If the endpoint does not answer in time
            InferenceAPIError: Malformed URL, connection failure, bad status or payload
        """
        if not self.has_credentials():
            raise InferenceAuthenticationError(
                f"{InferenceConfig.API_KEY_ENV} is not set. "
                "Create a token at https://huggingface.co/settings/tokens"
            )

        body = self.build_request(code_prefix, parameters)
        logger.inference_request(self._model_url, len(code_prefix))
        started = time.time()

        try:
            response = self.session.post(
                self._model_url,
                data=body.to_json(),
                headers=self.headers(),
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            logger.inference_error(self._model_url, str(e))
            raise InferenceTimeoutError(
                f"No response from {self._model_url} within {self.timeout}s"
            ) from e
        except (
            requests.exceptions.MissingSchema,
            requests.exceptions.InvalidSchema,
            requests.exceptions.InvalidURL,
        ) as e:
            logger.inference_error(self._model_url, str(e))
            raise InferenceAPIError(f"Malformed model URL '{self._model_url}': {e}") from e
        except requests.exceptions.RequestException as e:
            logger.inference_error(self._model_url, str(e))
            raise InferenceAPIError(f"Request to {self._model_url} failed: {e}") from e

        self._raise_for_status(response)

        try:
            payload = response.json()
        except ValueError as e:
            logger.inference_error(self._model_url, "undecodable response body")
            raise InferenceAPIError(
                f"Inference endpoint returned a non-JSON body: {response.text[:200]}"
            ) from e

        try:
            result = InferenceResponse.from_huggingface(
                payload, prompt=code_prefix, model=self._model_url
            )
        except ValueError as e:
            logger.inference_error(self._model_url, str(e))
            raise InferenceAPIError(str(e)) from e

        logger.inference_response(
            self._model_url,
            status=response.status_code,
            completion_chars=len(result.completion),
            elapsed=time.time() - started,
        )
        return result

    def _raise_for_status(self, response: requests.Response) -> None:
        status = response.status_code
        if status < 400:
            return

        detail = self._error_detail(response)
        logger.inference_error(self._model_url, f"HTTP {status}: {detail}")

        if status in (401, 403):
            raise InferenceAuthenticationError(
                f"Hugging Face rejected the API key (HTTP {status}): {detail}"
            )
        if status == 429:
            raise InferenceRateLimitError(f"Rate limit exceeded: {detail}")
        if status == 503:
            # The hosted model is cold and still loading
            raise InferenceAPIError(f"Model is currently unavailable: {detail}")
        raise InferenceAPIError(f"Inference endpoint error (HTTP {status}): {detail}")

    @staticmethod
    def _error_detail(response: requests.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            return response.text[:200]
        if isinstance(payload, dict) and "error" in payload:
            return str(payload["error"])
        return str(payload)[:200]

    def close(self) -> None:
        self.session.close()

    @staticmethod
    def is_endpoint_reachable(model_url: str, timeout: float = 5.0) -> bool:
        """
        Check whether the model endpoint answers at all.

        Returns:
            bool: True if an HTTP response came back (any status)
        """
        try:
            requests.head(model_url, timeout=timeout)
            return True
        except requests.exceptions.RequestException:
            return False
