"""
model_clients.py - Text-generation backends and the Firestore client helper

This module provides the single-call "model invoker" used by the fallback
dispatcher, plus the Firestore client factory used by the journal store.

Backends:
1. GeminiApiInvoker - POSTs to the Generative Language REST API
   (`<endpoint>/<model_id>:generateContent?key=<secret>`) through a shared
   httpx.AsyncClient.
2. VertexInvoker - same contract on top of Vertex AI's GenerativeModel, for
   deployments that authenticate with a service account instead of an API key.

Contract shared by both:
- `await invoker.invoke(model_id, prompt, generation)` returns a ModelResponse.
- Failures (non-2xx, timeout, transport error, blocked or empty candidate) are
  logged and returned as `ModelResponse(ok=False, ...)`; they are never raised.
- One attempt per call. Retrying across models is the dispatcher's job.

This module is import-safe: if the Vertex SDK is missing, only the Vertex
backend becomes unavailable.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx
from google.cloud import firestore

from .config import BACKEND_VERTEX, Settings
from .errors import TransportFailure

# Optional Vertex AI imports
try:
    import vertexai
    from vertexai.generative_models import GenerativeModel
    _VERTEX_AVAILABLE = True
except ImportError:
    vertexai = None
    GenerativeModel = None
    _VERTEX_AVAILABLE = False

_logger = logging.getLogger(__name__)
_logger.addHandler(logging.NullHandler())


@dataclass(frozen=True)
class GenerationConfig:
    temperature: float
    max_output_tokens: int

    def to_payload(self) -> Dict[str, Any]:
        return {"temperature": self.temperature, "maxOutputTokens": self.max_output_tokens}


@dataclass(frozen=True)
class ModelResponse:
    """Typed outcome of one model invocation."""
    model_id: str
    ok: bool
    text: str = ""
    status_code: Optional[int] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, model_id: str, text: str, status_code: Optional[int] = None) -> "ModelResponse":
        return cls(model_id=model_id, ok=True, text=text, status_code=status_code)

    @classmethod
    def failure(cls, model_id: str, error: str, status_code: Optional[int] = None) -> "ModelResponse":
        return cls(model_id=model_id, ok=False, status_code=status_code, error=error)

    def raise_for_failure(self) -> None:
        if not self.ok:
            raise TransportFailure(self.model_id, self.error or "unknown error", self.status_code)


def extract_candidate_text(payload: Any) -> Optional[str]:
    """
    Pull `candidates[0].content.parts[0].text` out of a generateContent
    response body. Returns None when any step of the path is missing.
    """
    try:
        text = payload["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    return text if isinstance(text, str) else None


class GeminiApiInvoker:
    """Calls the Generative Language REST API for one model at a time."""

    def __init__(self, client: httpx.AsyncClient, api_key: Optional[str], endpoint: str):
        self._client = client
        self._api_key = api_key
        self._endpoint = endpoint.rstrip("/")

    def _url(self, model_id: str) -> str:
        return f"{self._endpoint}/{model_id}:generateContent"

    async def invoke(self, model_id: str, prompt: str, generation: GenerationConfig) -> ModelResponse:
        if not self._api_key:
            _logger.warning("GEMINI_API_KEY is not set; cannot call model %s", model_id)
            return ModelResponse.failure(model_id, "missing API key")

        body = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": generation.to_payload(),
        }

        try:
            response = await self._client.post(
                self._url(model_id),
                params={"key": self._api_key},
                json=body,
                headers={"Content-Type": "application/json"},
            )
        except httpx.TimeoutException as e:
            _logger.warning("Model %s timed out: %s", model_id, e)
            return ModelResponse.failure(model_id, "timeout")
        except httpx.HTTPError as e:
            _logger.warning("Model %s transport error: %s", model_id, e)
            return ModelResponse.failure(model_id, f"transport error: {e.__class__.__name__}")

        if not response.is_success:
            _logger.warning("Model %s returned HTTP %d", model_id, response.status_code)
            return ModelResponse.failure(model_id, f"HTTP {response.status_code}", response.status_code)

        try:
            payload = response.json()
        except ValueError:
            _logger.warning("Model %s returned a non-JSON body", model_id)
            return ModelResponse.failure(model_id, "non-JSON response body", response.status_code)

        text = extract_candidate_text(payload)
        if text is None:
            # Blocked prompts come back 200 with no candidates.
            _logger.warning(
                "Model %s response had no candidate text. Prompt feedback: %s",
                model_id,
                payload.get("promptFeedback") if isinstance(payload, dict) else None,
            )
            return ModelResponse.failure(model_id, "no candidate text", response.status_code)

        _logger.debug("Model %s answered with %d chars", model_id, len(text))
        return ModelResponse.success(model_id, text, response.status_code)


class VertexInvoker:
    """
    Vertex AI backend. `vertexai.init` runs lazily, at most once per invoker,
    on the first call.
    """

    def __init__(self, project: Optional[str], location: str):
        self._project = project
        self._location = location
        self._initialized = False

    def _ensure_initialized(self) -> bool:
        if self._initialized:
            return True
        if not _VERTEX_AVAILABLE:
            _logger.warning("Vertex AI python package not available.")
            return False
        try:
            _logger.info("Initializing Vertex AI: project=%s, location=%s", self._project, self._location)
            vertexai.init(project=self._project, location=self._location)
            self._initialized = True
        except Exception as e:
            _logger.exception("Vertex AI initialization failed: %s", e)
        return self._initialized

    async def invoke(self, model_id: str, prompt: str, generation: GenerationConfig) -> ModelResponse:
        if not self._ensure_initialized():
            return ModelResponse.failure(model_id, "vertex unavailable")

        generation_config = {
            "max_output_tokens": generation.max_output_tokens,
            "temperature": generation.temperature,
        }

        try:
            model = GenerativeModel(model_id)
            response = await model.generate_content_async(prompt, generation_config=generation_config)
        except Exception as e:
            _logger.warning("Vertex model %s failed: %s", model_id, e)
            return ModelResponse.failure(model_id, f"vertex error: {e.__class__.__name__}")

        if not response.candidates:
            _logger.warning(
                "Vertex AI response was blocked. Prompt Feedback: %s",
                response.prompt_feedback,
            )
            return ModelResponse.failure(model_id, "blocked")

        try:
            text = response.candidates[0].content.parts[0].text
        except (IndexError, AttributeError, ValueError):
            return ModelResponse.failure(model_id, "no candidate text")

        return ModelResponse.success(model_id, text)


def build_invoker(settings: Settings, client: Optional[httpx.AsyncClient] = None):
    """
    Pick the generation backend named by settings. The REST backend needs the
    app's shared httpx client.
    """
    if settings.generation_backend == BACKEND_VERTEX:
        return VertexInvoker(settings.gcp_project, settings.gcp_location)
    if client is None:
        raise ValueError("GeminiApiInvoker requires an httpx.AsyncClient")
    return GeminiApiInvoker(client, settings.gemini_api_key, settings.gemini_endpoint)


def get_firestore_client(project: Optional[str] = None) -> Optional[firestore.Client]:
    """
    Initialize and return a Firestore client.

    Returns:
        Firestore client instance, or None on failure.
    """
    try:
        _logger.debug("Initializing Firestore client for project: %s", project)
        return firestore.Client(project=project)
    except Exception as e:
        _logger.exception("Firestore client initialization failed: %s", e)
        return None
