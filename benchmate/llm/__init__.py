"""Provider normalization layer - one generate() call over several wire protocols.

The OpenCode Zen gateway fronts many model families, but not with one API
shape. Which shape a request uses is decided purely from the model id:

* ``claude-*``  -> Anthropic-style ``/v1/messages`` (typed content blocks)
* ``gpt-*``     -> "responses" family, served through ``/v1/chat/completions``
* anything else -> OpenAI-style ``/v1/chat/completions``

Each protocol owns a request builder and a response parser; callers only
ever see ``ProviderResponse(text, tool_calls)``.
"""

import json
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import httpx

from benchmate.exceptions import (
    MissingCredentialsError,
    ProviderAPIError,
    ProviderNetworkError,
    ProviderResponseError,
)
from benchmate.logging import get_logger

log = get_logger(__name__)


ZEN_BASE_URL = "https://opencode.ai/zen"
DEFAULT_API_KEY_ENV = "OPENCODE_ZEN_API_KEY"
DEFAULT_MAX_TOKENS = 4096
DEFAULT_TEMPERATURE = 0.7


@dataclass
class Message:
    """A message in the conversation."""

    role: str  # "system", "user", "assistant"
    content: str


@dataclass
class ToolCall:
    """A tool call requested by the model."""

    id: str
    name: str
    input: dict[str, Any] = field(default_factory=dict)


@dataclass
class ProviderResponse:
    """Normalized response from any wire protocol."""

    text: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)


@dataclass
class ToolDefinition:
    """Definition of a tool offered to the model."""

    name: str
    description: str
    input_schema: dict[str, Any]  # JSON Schema

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema,
        }

    def to_function(self) -> dict[str, Any]:
        """Chat-completions function wrapper."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.input_schema,
            },
        }


class WireProtocol(str, Enum):
    """Backend API shapes reachable through the gateway."""

    MESSAGES = "messages"
    RESPONSES = "responses"
    CHAT_COMPLETIONS = "chat_completions"


_PROTOCOL_PREFIXES: tuple[tuple[str, WireProtocol], ...] = (
    ("claude-", WireProtocol.MESSAGES),
    ("gpt-", WireProtocol.RESPONSES),
)

# The responses family is redirected to the chat-completions endpoint.
_ENDPOINTS: dict[WireProtocol, str] = {
    WireProtocol.MESSAGES: "/v1/messages",
    WireProtocol.RESPONSES: "/v1/chat/completions",
    WireProtocol.CHAT_COMPLETIONS: "/v1/chat/completions",
}


def classify_model(model: str) -> WireProtocol:
    """Map a model id to its wire protocol. Total: unknown ids get chat-completions."""
    lowered = str(model or "").strip().lower()
    for prefix, protocol in _PROTOCOL_PREFIXES:
        if lowered.startswith(prefix):
            return protocol
    return WireProtocol.CHAT_COMPLETIONS


def endpoint_for(protocol: WireProtocol) -> str:
    return _ENDPOINTS[protocol]


def _message_dicts(messages: list[Message]) -> list[dict[str, Any]]:
    return [
        {"role": msg.role, "content": msg.content}
        for msg in messages
        if msg.role != "system"
    ]


def _build_messages_request(
    *,
    model: str,
    messages: list[Message],
    system: str | None,
    tools: list[ToolDefinition] | None,
    max_tokens: int,
    temperature: float,
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "model": model,
        "max_tokens": max_tokens,
        "temperature": temperature,
    }
    if system:
        body["system"] = system
    body["messages"] = _message_dicts(messages)
    if tools:
        body["tools"] = [tool.to_dict() for tool in tools]
    return body


def _build_chat_request(
    *,
    model: str,
    messages: list[Message],
    system: str | None,
    tools: list[ToolDefinition] | None,
    max_tokens: int,
    temperature: float,
) -> dict[str, Any]:
    chat_messages: list[dict[str, Any]] = []
    if system:
        chat_messages.append({"role": "system", "content": system})
    chat_messages.extend(_message_dicts(messages))

    body: dict[str, Any] = {
        "model": model,
        "max_tokens": max_tokens,
        "temperature": temperature,
        "messages": chat_messages,
    }
    if tools:
        body["tools"] = [tool.to_function() for tool in tools]
    return body


def build_request(
    protocol: WireProtocol,
    *,
    model: str,
    messages: list[Message],
    system: str | None = None,
    tools: list[ToolDefinition] | None = None,
    max_tokens: int = DEFAULT_MAX_TOKENS,
    temperature: float = DEFAULT_TEMPERATURE,
) -> dict[str, Any]:
    """Build the JSON body for one protocol."""
    builder = _build_messages_request if protocol == WireProtocol.MESSAGES else _build_chat_request
    return builder(
        model=model,
        messages=messages,
        system=system,
        tools=tools,
        max_tokens=max_tokens,
        temperature=temperature,
    )


def _expect(value: Any, kind: type, where: str) -> Any:
    if not isinstance(value, kind):
        raise ProviderResponseError(
            f"Malformed response: {where} must be a {kind.__name__}, got {type(value).__name__}"
        )
    return value


def _parse_messages_response(data: dict[str, Any]) -> ProviderResponse:
    blocks = _expect(data.get("content") or [], list, "content")
    texts: list[str] = []
    tool_calls: list[ToolCall] = []
    for block in blocks:
        block = _expect(block, dict, "content block")
        block_type = block.get("type")
        if block_type == "text":
            texts.append(str(block.get("text") or ""))
        elif block_type == "tool_use":
            tool_input = block.get("input")
            tool_calls.append(ToolCall(
                id=str(block.get("id", "")),
                name=str(block.get("name", "")),
                input=tool_input if isinstance(tool_input, dict) else {},
            ))
    return ProviderResponse(text="".join(texts), tool_calls=tool_calls)


def _decode_tool_arguments(name: str, raw: Any) -> dict[str, Any]:
    if isinstance(raw, dict):
        return raw
    try:
        parsed = json.loads(raw)
    except (TypeError, json.JSONDecodeError) as e:
        raise ProviderResponseError(
            f"Invalid JSON arguments for tool call '{name}': {e}"
        ) from e
    if not isinstance(parsed, dict):
        raise ProviderResponseError(
            f"Tool call '{name}' arguments must be a JSON object, got {type(parsed).__name__}"
        )
    return parsed


def _parse_chat_response(data: dict[str, Any]) -> ProviderResponse:
    choices = _expect(data.get("choices") or [], list, "choices")
    if not choices:
        return ProviderResponse(text="", tool_calls=[])
    choice = _expect(choices[0], dict, "choices[0]")
    message = _expect(choice.get("message") or {}, dict, "message")

    tool_calls: list[ToolCall] = []
    for tc in _expect(message.get("tool_calls") or [], list, "tool_calls"):
        tc = _expect(tc, dict, "tool call")
        function = _expect(tc.get("function") or {}, dict, "tool call function")
        name = str(function.get("name", ""))
        tool_calls.append(ToolCall(
            id=str(tc.get("id", "")),
            name=name,
            input=_decode_tool_arguments(name, function.get("arguments")),
        ))

    text = _expect(message.get("content") or "", str, "message content")
    return ProviderResponse(text=text, tool_calls=tool_calls)


def parse_response(protocol: WireProtocol, data: dict[str, Any]) -> ProviderResponse:
    """Parse a decoded JSON reply for one protocol.

    Raises:
        ProviderResponseError: on a malformed body or undecodable tool arguments
    """
    if not isinstance(data, dict):
        raise ProviderResponseError(f"Unexpected response payload: {type(data).__name__}")
    if protocol == WireProtocol.MESSAGES:
        return _parse_messages_response(data)
    return _parse_chat_response(data)


class LLMProvider(ABC):
    """Abstract base class for LLM providers."""

    @abstractmethod
    async def generate(
        self,
        model: str,
        messages: list[Message],
        system: str | None = None,
        tools: list[ToolDefinition] | None = None,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
    ) -> ProviderResponse:
        pass

    async def close(self) -> None:
        return None


class ZenProvider(LLMProvider):
    """OpenCode Zen gateway provider. One HTTP attempt per call, no retries."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = ZEN_BASE_URL,
        api_key_env: str = DEFAULT_API_KEY_ENV,
        timeout: float = 120.0,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize the provider.

        Args:
            api_key: Explicit API key; falls back to ``api_key_env`` at call time
            base_url: Gateway base URL
            api_key_env: Environment variable holding the key
            timeout: Request timeout in seconds
            client: Optional preconfigured HTTP client
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.api_key_env = api_key_env
        self.client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    def _resolve_api_key(self) -> str:
        key = self.api_key or os.environ.get(self.api_key_env, "")
        if not key:
            raise MissingCredentialsError(self.api_key_env)
        return key

    async def generate(
        self,
        model: str,
        messages: list[Message],
        system: str | None = None,
        tools: list[ToolDefinition] | None = None,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
    ) -> ProviderResponse:
        """Generate a completion through the protocol matching ``model``."""
        api_key = self._resolve_api_key()

        protocol = classify_model(model)
        url = f"{self.base_url}{endpoint_for(protocol)}"
        body = build_request(
            protocol,
            model=model,
            messages=messages,
            system=system,
            tools=tools,
            max_tokens=max_tokens,
            temperature=temperature,
        )
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
        }

        log.debug(
            "Calling provider",
            model=model,
            protocol=protocol.value,
            url=url,
            msg_count=len(body.get("messages", [])),
            tool_count=len(tools or []),
        )
        try:
            response = await self.client.post(url, json=body, headers=headers)
        except httpx.HTTPError as e:
            raise ProviderNetworkError(f"Zen API request failed: {e}") from e

        log.debug("Provider response status", status=response.status_code)

        if not response.is_success:
            raise ProviderAPIError(
                f"Zen API error ({response.status_code}): {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            data = response.json()
        except json.JSONDecodeError as e:
            raise ProviderResponseError(f"Zen API response decode error: {e}") from e

        return parse_response(protocol, data)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()


ZEN_MODELS: list[dict[str, Any]] = [
    # Free models
    {"id": "big-pickle", "name": "Big Pickle", "category": "Free", "free": True},
    {"id": "gpt-5-nano", "name": "GPT 5 Nano", "category": "Free", "free": True},
    {"id": "glm-4.7-free", "name": "GLM 4.7 Free", "category": "Free", "free": True},
    {"id": "kimi-k2.5-free", "name": "Kimi K2.5 Free", "category": "Free", "free": True},
    {"id": "minimax-m2.1-free", "name": "MiniMax M2.1 Free", "category": "Free", "free": True},
    # Claude
    {"id": "claude-sonnet-4-5", "name": "Claude Sonnet 4.5", "category": "Claude", "free": False},
    {"id": "claude-sonnet-4", "name": "Claude Sonnet 4", "category": "Claude", "free": False},
    {"id": "claude-haiku-4-5", "name": "Claude Haiku 4.5", "category": "Claude", "free": False},
    {"id": "claude-opus-4-5", "name": "Claude Opus 4.5", "category": "Claude", "free": False},
    # GPT
    {"id": "gpt-5.2", "name": "GPT 5.2", "category": "GPT", "free": False},
    {"id": "gpt-5.2-codex", "name": "GPT 5.2 Codex", "category": "GPT", "free": False},
    {"id": "gpt-5.1-codex", "name": "GPT 5.1 Codex", "category": "GPT", "free": False},
    {"id": "gpt-5.1-codex-mini", "name": "GPT 5.1 Codex Mini", "category": "GPT", "free": False},
    # Other
    {"id": "gemini-3-flash", "name": "Gemini 3 Flash", "category": "Gemini", "free": False},
    {"id": "qwen3-coder", "name": "Qwen3 Coder 480B", "category": "Other", "free": False},
    {"id": "kimi-k2.5", "name": "Kimi K2.5", "category": "Other", "free": False},
]


def find_model(model_id: str) -> dict[str, Any] | None:
    """Look up a catalogue entry by id (case-insensitive)."""
    key = str(model_id or "").strip().lower()
    for entry in ZEN_MODELS:
        if entry["id"] == key:
            return entry
    return None


def create_provider(
    api_key: str | None = None,
    base_url: str | None = None,
    api_key_env: str = DEFAULT_API_KEY_ENV,
    timeout: float = 120.0,
) -> LLMProvider:
    """Create the gateway provider."""
    return ZenProvider(
        api_key=api_key or None,
        base_url=base_url or ZEN_BASE_URL,
        api_key_env=api_key_env,
        timeout=timeout,
    )
