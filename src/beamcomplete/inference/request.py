"""
Request payload models for the text-generation endpoint.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class Parameters:
    """Sampling parameters sent alongside the prompt."""

    temperature: float = 0.1
    do_sample: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "temperature": self.temperature,
            "do_sample": self.do_sample,
        }


@dataclass(frozen=True)
class RequestBody:
    """
    Body of a text-generation request.

    Serialized shape:
        {"inputs": "<code prefix>", "parameters": {"temperature": 0.1, "do_sample": false}}
    """

    inputs: str
    parameters: Parameters

    def to_dict(self) -> Dict[str, Any]:
        return {
            "inputs": self.inputs,
            "parameters": self.parameters.to_dict(),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())
