"""AI Gateway Service - connection to the hosted chat-completion endpoint.

One request type: a list of role-tagged messages (system, user) in, a single
text payload out. Talks to any OpenAI-compatible ``/chat/completions`` API.

When the configured model is not available on the account, the request is
repeated once with the fallback model. Nothing else is retried: connection
failures and non-2xx answers surface as ``ExternalServiceError``.
"""

import httpx
import logging
import time as _time
from typing import Optional, List, Dict, Any, Tuple
from pydantic import BaseModel

from app.config import settings
from app.exceptions import ExternalServiceError, ErrorCode

logger = logging.getLogger(__name__)

SERVICE_NAME = "Generation"


class AIGatewayConfig(BaseModel):
    """Configuration for the generation service connection."""

    base_url: str = "https://api.openai.com/v1"
    api_key: Optional[str] = None
    timeout: Optional[float] = None  # None: wait as long as the provider takes
    default_model: str = "chatgpt-4o-latest"
    fallback_model: str = "gpt-4o-mini"
    temperature: float = 0.7
    max_tokens: int = 1000

    @classmethod
    def from_settings(cls) -> "AIGatewayConfig":
        return cls(
            base_url=settings.OPENAI_BASE_URL,
            api_key=settings.OPENAI_API_KEY,
            timeout=settings.OPENAI_TIMEOUT_SECONDS,
            default_model=settings.OPENAI_MODEL,
            fallback_model=settings.OPENAI_FALLBACK_MODEL,
            temperature=settings.OPENAI_TEMPERATURE,
            max_tokens=settings.OPENAI_MAX_TOKENS,
        )


class ChatMessage(BaseModel):
    """Chat message format."""

    role: str  # system, user, assistant
    content: str


def _json_object(response: httpx.Response) -> Optional[Dict[str, Any]]:
    try:
        data = response.json()
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def _error_code(response: httpx.Response) -> Optional[str]:
    error = (_json_object(response) or {}).get("error")
    if isinstance(error, dict):
        return error.get("code")
    return None


def _error_message(response: httpx.Response) -> str:
    error = (_json_object(response) or {}).get("error")
    if isinstance(error, dict) and error.get("message"):
        return error["message"]
    return f"HTTP {response.status_code}"


def _read_completion(response: httpx.Response) -> Tuple[Dict[str, Any], str]:
    """Body and first choice's text of a 2xx reply; no choices means empty text."""
    data = _json_object(response)
    choices = data.get("choices") if data is not None else None
    if data is None or (choices is not None and not isinstance(choices, list)):
        logger.error(f"Generation reply is not a completion: {response.text[:200]}")
        raise ExternalServiceError(SERVICE_NAME, "malformed response", code=ErrorCode.AI_SERVICE_ERROR)
    if not choices:
        return data, ""

    choice = choices[0]
    message = choice.get("message") if isinstance(choice, dict) else None
    content = message.get("content") if isinstance(message, dict) else None
    if not isinstance(message, dict) or (content is not None and not isinstance(content, str)):
        logger.error(f"Generation reply has an unreadable choice: {str(choice)[:200]}")
        raise ExternalServiceError(SERVICE_NAME, "malformed response", code=ErrorCode.AI_SERVICE_ERROR)
    return data, content or ""


class AIGateway:
    """Gateway to the hosted chat-completion API."""

    def __init__(self, config: Optional[AIGatewayConfig] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config or AIGatewayConfig.from_settings()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        logger.info("Generation API key available: %s", bool(self.config.api_key))

    async def get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client with auth headers."""
        if self._client is None or self._client.is_closed:
            headers = {"Content-Type": "application/json"}
            if self.config.api_key:
                headers["Authorization"] = f"Bearer {self.config.api_key}"
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                timeout=self.config.timeout,
                headers=headers,
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def health_check(self) -> Dict[str, Any]:
        """Check that the provider is configured and answering."""
        if not self.config.api_key:
            return {"status": "unconfigured", "error": "API key is not configured"}
        try:
            client = await self.get_client()
            response = await client.get("/models")
            response.raise_for_status()
            return {
                "status": "healthy",
                "model": self.config.default_model,
                "base_url": self.config.base_url,
            }
        except httpx.ConnectError:
            return {"status": "unavailable", "error": "Cannot connect to generation service"}
        except httpx.HTTPStatusError as e:
            return {"status": "error", "error": _error_message(e.response)}

    async def _post_chat(self, model: str, messages: List[Dict[str, str]], max_tokens: int, temperature: float) -> httpx.Response:
        client = await self.get_client()
        payload = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        return await client.post("/chat/completions", json=payload)

    async def chat_completion(
        self,
        messages: List[Dict[str, str]],
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> Dict[str, Any]:
        """Generate a chat completion.

        Returns ``{"content", "usage", "model"}``. Raises ExternalServiceError
        when the service is unconfigured or unreachable, answers non-2xx, or
        replies with a body that is not a completion.
        """
        if not self.config.api_key:
            logger.error("Generation API key is not configured")
            raise ExternalServiceError(SERVICE_NAME, "API key is not configured", code=ErrorCode.AI_SERVICE_ERROR)

        messages = [ChatMessage(**m).model_dump() for m in messages]
        max_tokens = max_tokens or self.config.max_tokens
        temperature = self.config.temperature if temperature is None else temperature

        model = self.config.default_model
        start = _time.time()
        try:
            response = await self._post_chat(model, messages, max_tokens, temperature)
            if response.status_code >= 400 and _error_code(response) == "model_not_found":
                logger.warning(f"Model {model} not available, falling back to {self.config.fallback_model}")
                model = self.config.fallback_model
                response = await self._post_chat(model, messages, max_tokens, temperature)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            detail = _error_message(e.response)
            logger.error(f"Generation call failed: model={model}, status={e.response.status_code}, error={detail}")
            raise ExternalServiceError(SERVICE_NAME, detail, code=ErrorCode.AI_SERVICE_ERROR)
        except httpx.HTTPError as e:
            logger.error(f"Generation service unreachable: {type(e).__name__}: {e}")
            raise ExternalServiceError(SERVICE_NAME, "service unreachable", code=ErrorCode.AI_SERVICE_ERROR)

        data, content = _read_completion(response)

        duration_ms = int((_time.time() - start) * 1000)
        logger.info(f"Generation response: model={data.get('model', model)}, usage={data.get('usage', {})}, {duration_ms}ms")

        return {
            "content": content,
            "usage": data.get("usage", {}),
            "model": data.get("model", model),
        }


# Singleton instance
ai_gateway = AIGateway()


async def get_ai_gateway() -> AIGateway:
    """Dependency injection for AI gateway."""
    return ai_gateway
