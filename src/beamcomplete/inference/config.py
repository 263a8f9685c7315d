"""
Inference configuration and model registry.

Maps model aliases to Hugging Face Inference API endpoints.
"""

from typing import Dict


class InferenceConfig:
    """
    Central configuration for completion models.

    Defines the endpoint base, model aliases and default sampling values.
    """

    API_BASE_URL = "https://api-inference.huggingface.co/models"

    # Aliases -> Hugging Face repository ids
    MODELS: Dict[str, str] = {
        "starcoder": "bigcode/starcoder",
        "starcoderbase": "bigcode/starcoderbase",
        "starcoder2-15b": "bigcode/starcoder2-15b",
        # Aliases
        "default": "bigcode/starcoder",
        "bigcode": "bigcode/starcoder",
    }

    DEFAULT_MODEL = "starcoder"

    # Low temperature, greedy decoding: completions should be deterministic
    DEFAULT_TEMPERATURE = 0.1
    DEFAULT_DO_SAMPLE = False

    DEFAULT_TIMEOUT = 30.0

    API_KEY_ENV = "HF_API_KEY"

    @classmethod
    def resolve_repo_id(cls, model_alias: str) -> str:
        """
        Resolve a model alias to a repository id.

        Examples:
            "starcoder" -> "bigcode/starcoder"
            "bigcode/santacoder" -> "bigcode/santacoder"
        """
        return cls.MODELS.get(model_alias, model_alias)

    @classmethod
    def resolve_model_url(cls, model: str = None) -> str:
        """
        Resolve an alias, repository id or full URL to the endpoint URL.

        Examples:
            "starcoder" -> "https://api-inference.huggingface.co/models/bigcode/starcoder"
            "https://my-endpoint.example/generate" -> unchanged
        """
        model = model or cls.DEFAULT_MODEL
        if model.startswith(("http://", "https://")):
            return model
        return f"{cls.API_BASE_URL}/{cls.resolve_repo_id(model)}"

    @classmethod
    def list_available_models(cls) -> Dict[str, str]:
        """Alias -> endpoint URL for every registered alias."""
        return {alias: cls.resolve_model_url(alias) for alias in cls.MODELS}
