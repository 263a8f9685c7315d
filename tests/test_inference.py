"""
Tests for the inference request payload, response parsing and the
Hugging Face client. The HTTP layer is mocked; nothing leaves the process.
"""

import json
import os
import sys
from unittest.mock import MagicMock

import pytest
import requests

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from beamcomplete.config import Config
from beamcomplete.inference import (
    HuggingFaceInferenceClient,
    InferenceAPIError,
    InferenceAuthenticationError,
    InferenceConfig,
    InferenceRateLimitError,
    InferenceResponse,
    InferenceTimeoutError,
    Parameters,
    RequestBody,
)


STARCODER_URL = "https://api-inference.huggingface.co/models/bigcode/starcoder"


def make_http_response(status_code=200, payload=None, text=""):
    response = MagicMock()
    response.status_code = status_code
    if isinstance(payload, Exception):
        response.json.side_effect = payload
    else:
        response.json.return_value = payload
    response.text = text or (json.dumps(payload) if not isinstance(payload, Exception) else "")
    return response


def make_client(response=None, side_effect=None, api_key="hf_test_token", **kwargs):
    session = MagicMock()
    if side_effect is not None:
        session.post.side_effect = side_effect
    else:
        session.post.return_value = response
    client = HuggingFaceInferenceClient(api_key=api_key, session=session, **kwargs)
    return client, session


# ===========================================================================
# Request payload
# ===========================================================================

class TestRequestBody:
    def test_serialized_shape(self):
        body = RequestBody("foo.", Parameters(temperature=0.1, do_sample=False))
        data = json.loads(body.to_json())

        assert set(data.keys()) == {"inputs", "parameters"}
        assert set(data["parameters"].keys()) == {"temperature", "do_sample"}
        assert data == {
            "inputs": "foo.",
            "parameters": {"temperature": 0.1, "do_sample": False},
        }

    def test_do_sample_serializes_as_json_boolean(self):
        body = RequestBody("x", Parameters(0.1, False))
        assert '"do_sample": false' in body.to_json()

    def test_default_parameters(self):
        params = Parameters()
        assert params.temperature == 0.1
        assert params.do_sample is False

    def test_parameters_are_frozen(self):
        params = Parameters()
        with pytest.raises(AttributeError):
            params.temperature = 1.0


# ===========================================================================
# Response parsing
# ===========================================================================

class TestInferenceResponse:
    def test_list_payload_strips_prompt(self):
        prompt = "p.apply("
        payload = [{"generated_text": prompt + "Count.perElement());\np.run();"}]
        response = InferenceResponse.from_huggingface(payload, prompt=prompt)

        assert response.completion == "Count.perElement());\np.run();"
        assert response.first_line() == "Count.perElement());"
        assert response.generated_text == payload[0]["generated_text"]
        assert response.raw_response is payload

    def test_dict_payload(self):
        response = InferenceResponse.from_huggingface({"generated_text": "abc"}, prompt="zzz")
        # Prompt not echoed: whole text is the completion
        assert response.completion == "abc"

    def test_error_payload_raises(self):
        with pytest.raises(ValueError, match="loading"):
            InferenceResponse.from_huggingface({"error": "Model is loading"}, prompt="")

    def test_empty_list_raises(self):
        with pytest.raises(ValueError):
            InferenceResponse.from_huggingface([], prompt="")

    def test_unknown_shape_raises(self):
        with pytest.raises(ValueError):
            InferenceResponse.from_huggingface([{"text": "x"}], prompt="")

    def test_is_empty(self):
        response = InferenceResponse.from_huggingface([{"generated_text": "abc   "}], prompt="abc")
        assert response.is_empty()
        assert response.first_line() == ""


# ===========================================================================
# Model registry and configuration
# ===========================================================================

class TestInferenceConfig:
    def test_default_model_url(self):
        assert InferenceConfig.resolve_model_url() == STARCODER_URL
        assert InferenceConfig.resolve_model_url("starcoder") == STARCODER_URL

    def test_repo_id(self):
        assert InferenceConfig.resolve_model_url("bigcode/santacoder") == (
            "https://api-inference.huggingface.co/models/bigcode/santacoder"
        )

    def test_full_url_unchanged(self):
        url = "https://my-endpoint.example/generate"
        assert InferenceConfig.resolve_model_url(url) == url

    def test_list_available_models(self):
        models = InferenceConfig.list_available_models()
        assert models["starcoder"] == STARCODER_URL


class TestConfig:
    def test_defaults(self, monkeypatch):
        for name in ("HF_API_KEY", "BEAMCOMPLETE_MODEL", "BEAMCOMPLETE_TEMPERATURE",
                     "BEAMCOMPLETE_DO_SAMPLE", "BEAMCOMPLETE_TIMEOUT"):
            monkeypatch.delenv(name, raising=False)

        config = Config()
        assert config.api_key is None
        assert config.model_url == STARCODER_URL
        assert config.parameters() == Parameters(0.1, False)
        assert config.timeout == 30.0

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("HF_API_KEY", "hf_abc")
        monkeypatch.setenv("BEAMCOMPLETE_MODEL", "bigcode/starcoderbase")
        monkeypatch.setenv("BEAMCOMPLETE_TEMPERATURE", "0.5")
        monkeypatch.setenv("BEAMCOMPLETE_DO_SAMPLE", "true")
        monkeypatch.setenv("BEAMCOMPLETE_TIMEOUT", "5")

        config = Config()
        assert config.api_key == "hf_abc"
        assert config.model_url.endswith("/bigcode/starcoderbase")
        assert config.parameters() == Parameters(0.5, True)
        assert config.timeout == 5.0


# ===========================================================================
# Hugging Face client
# ===========================================================================

class TestHuggingFaceInferenceClient:
    def test_posts_request(self):
        prompt = "p.apply("
        http = make_http_response(payload=[{"generated_text": prompt + "ParDo.of(fn));"}])
        client, session = make_client(http, timeout=7)

        result = client.complete(prompt)

        assert result.completion == "ParDo.of(fn));"
        session.post.assert_called_once()
        args, kwargs = session.post.call_args
        assert args[0] == STARCODER_URL
        assert kwargs["headers"] == {
            "Content-Type": "application/json",
            "Authorization": "Bearer hf_test_token",
        }
        assert kwargs["timeout"] == 7
        assert json.loads(kwargs["data"]) == {
            "inputs": prompt,
            "parameters": {"temperature": 0.1, "do_sample": False},
        }

    def test_explicit_parameters(self):
        http = make_http_response(payload=[{"generated_text": "x"}])
        client, session = make_client(http)

        client.complete("x", Parameters(temperature=0.7, do_sample=True))

        sent = json.loads(session.post.call_args.kwargs["data"])
        assert sent["parameters"] == {"temperature": 0.7, "do_sample": True}

    def test_missing_api_key_never_posts(self, monkeypatch):
        monkeypatch.delenv("HF_API_KEY", raising=False)
        client, session = make_client(api_key=None)

        assert client.has_credentials() is False
        with pytest.raises(InferenceAuthenticationError):
            client.complete("p.apply(")
        session.post.assert_not_called()

    def test_blank_api_key_is_missing(self):
        client, session = make_client(api_key="   ")
        assert client.has_credentials() is False

    def test_api_key_from_environment(self, monkeypatch):
        monkeypatch.setenv("HF_API_KEY", "hf_from_env")
        client = HuggingFaceInferenceClient(session=MagicMock())
        assert client.has_credentials()
        assert client.headers()["Authorization"] == "Bearer hf_from_env"

    def test_connection_error_is_chained(self):
        cause = requests.exceptions.ConnectionError("connection refused")
        client, _ = make_client(side_effect=cause)

        with pytest.raises(InferenceAPIError) as excinfo:
            client.complete("p.apply(")
        assert excinfo.value.__cause__ is cause

    def test_timeout(self):
        client, _ = make_client(side_effect=requests.exceptions.ReadTimeout("slow"))
        with pytest.raises(InferenceTimeoutError):
            client.complete("p.apply(")

    def test_malformed_url(self):
        cause = requests.exceptions.MissingSchema("no scheme")
        client, _ = make_client(side_effect=cause)
        with pytest.raises(InferenceAPIError, match="Malformed model URL") as excinfo:
            client.complete("p.apply(")
        assert excinfo.value.__cause__ is cause

    @pytest.mark.parametrize("status", [401, 403])
    def test_rejected_key(self, status):
        http = make_http_response(status, payload={"error": "Invalid token"})
        client, _ = make_client(http)
        with pytest.raises(InferenceAuthenticationError, match="Invalid token"):
            client.complete("p.apply(")

    def test_rate_limited(self):
        http = make_http_response(429, payload={"error": "Rate limit reached"})
        client, _ = make_client(http)
        with pytest.raises(InferenceRateLimitError):
            client.complete("p.apply(")

    def test_model_loading(self):
        http = make_http_response(503, payload={"error": "Model bigcode/starcoder is currently loading"})
        client, _ = make_client(http)
        with pytest.raises(InferenceAPIError, match="currently loading"):
            client.complete("p.apply(")

    def test_non_json_body(self):
        http = make_http_response(200, payload=ValueError("not json"), text="<html>")
        client, _ = make_client(http)
        with pytest.raises(InferenceAPIError, match="non-JSON"):
            client.complete("p.apply(")

    def test_error_payload_with_ok_status(self):
        http = make_http_response(200, payload={"error": "something odd"})
        client, _ = make_client(http)
        with pytest.raises(InferenceAPIError, match="something odd"):
            client.complete("p.apply(")

    def test_close_closes_session(self):
        client, session = make_client()
        client.close()
        session.close.assert_called_once()

    def test_provider_metadata(self):
        client, _ = make_client(model="starcoderbase")
        assert client.provider_name == "huggingface"
        assert client.model_url.endswith("/bigcode/starcoderbase")
