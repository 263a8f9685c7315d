"""
Inference response data model.

Normalizes the payload shapes the Hugging Face Inference API returns for
text-generation models.
"""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class InferenceResponse:
    """
    Unified inference response.

    ``completion`` is ``generated_text`` with the echoed prompt removed,
    i.e. only the text that would be inserted at the caret.
    """

    generated_text: str
    completion: str
    model: str = ""
    raw_response: Optional[Any] = None

    def first_line(self) -> str:
        """Completion up to its first line break, for inline display."""
        return self.completion.split("\n", 1)[0].rstrip()

    def is_empty(self) -> bool:
        return not self.completion.strip()

    @classmethod
    def from_huggingface(cls, payload: Any, prompt: str, model: str = "") -> "InferenceResponse":
        """
        Create from a text-generation payload.

        Accepts ``[{"generated_text": ...}]`` and ``{"generated_text": ...}``.

        Raises:
            ValueError: For ``{"error": ...}`` payloads or unknown shapes
        """
        if isinstance(payload, dict) and "error" in payload:
            raise ValueError(f"Inference endpoint error: {payload['error']}")

        item = payload
        if isinstance(payload, list):
            if not payload:
                raise ValueError("Inference endpoint returned an empty list")
            item = payload[0]

        if not isinstance(item, dict) or "generated_text" not in item:
            raise ValueError(f"Unexpected inference payload: {str(payload)[:200]}")

        generated = item["generated_text"] or ""
        completion = generated[len(prompt):] if generated.startswith(prompt) else generated

        return cls(
            generated_text=generated,
            completion=completion,
            model=model,
            raw_response=payload,
        )
