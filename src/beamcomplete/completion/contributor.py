"""
Completion contributor for Apache Beam pipelines.

When the caret is in the argument list of ``Pipeline.apply`` or
``PCollection.apply``, the code before the caret is sent to the inference
endpoint and the continuation it returns becomes a completion item.
"""

from concurrent.futures import CancelledError
from typing import Optional

from beamcomplete.beam.sdk import match_transforms
from beamcomplete.code_intelligence.java_resolver import JavaSymbolResolver
from beamcomplete.completion.parameters import CompletionParameters
from beamcomplete.completion.patterns import is_after_apply_call
from beamcomplete.completion.results import (
    SOURCE_INFERENCE,
    SOURCE_TRANSFORM,
    CompletionResultSet,
    LookupElement,
)
from beamcomplete.completion.session import CompletionSession
from beamcomplete.inference.base import InferenceCancelledError
from beamcomplete.inference.request import Parameters
from beamcomplete.utils.logger import logger


TRANSFORMS_TYPE_TEXT = "org.apache.beam.sdk.transforms"


class BeamCompletionContributor:
    """Fills completion variants for Beam `apply(...)` arguments."""

    def __init__(
        self,
        session: CompletionSession,
        parameters: Optional[Parameters] = None,
        fallback_to_transforms: bool = True,
    ):
        """
        Initialize the contributor.

        Args:
            session: Session that runs inference requests
            parameters: Sampling parameters (client default if omitted)
            fallback_to_transforms: Offer SDK transform names when inference
                cannot be attempted (no credentials)
        """
        self.session = session
        self.parameters = parameters
        self.fallback_to_transforms = fallback_to_transforms

    def accepts(self, parameters: CompletionParameters) -> bool:
        """True if the caret position triggers a Beam completion."""
        resolver = JavaSymbolResolver(parameters.parsed)
        matched = is_after_apply_call(parameters.position, resolver)
        logger.trigger_evaluated(parameters.file_path, parameters.offset, matched)
        return matched

    def fill_completion_variants(
        self,
        parameters: CompletionParameters,
        result: CompletionResultSet,
    ) -> bool:
        """
        Add completion items for the caret described by ``parameters``.

        Returns:
            True if the caret matched the trigger pattern

        Raises:
            InferenceError: If the inference request fails. Only this
                completion attempt is affected.
        """
        if not self.accepts(parameters):
            return False

        if not self.session.client.has_credentials():
            logger.warning("TRIGGER", "No API key configured; skipping inference")
            if self.fallback_to_transforms:
                self._add_transforms(parameters, result, reason="no credentials")
            return True

        try:
            future = self.session.dispatch(
                parameters.code_to_complete,
                self.parameters,
                request_id=parameters.request_id,
            )
            response = future.result()
        except (CancelledError, InferenceCancelledError):
            return True

        suggestion = response.first_line()
        if suggestion:
            result.add_element(LookupElement(
                lookup_string=suggestion,
                source=SOURCE_INFERENCE,
                type_text=self.session.client.model_url.rsplit("/", 1)[-1],
            ))
        return True

    def _add_transforms(
        self,
        parameters: CompletionParameters,
        result: CompletionResultSet,
        reason: str,
    ) -> None:
        names = match_transforms(parameters.prefix)
        result.add_all(
            LookupElement(lookup_string=name, source=SOURCE_TRANSFORM, type_text=TRANSFORMS_TYPE_TEXT)
            for name in names
        )
        logger.fallback_used(reason, len(names))
