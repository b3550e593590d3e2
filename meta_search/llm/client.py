"""
╔══════════════════════════════════════════════════════════════════════════════╗
║                         OLLAMA ORACLE CLIENT                                 ║
║                                                                              ║
║   Generative oracle for the design search, backed by a local Ollama.         ║
║   Supports caching, retry with backoff, and structured JSON parsing.         ║
║   Any object with the same two coroutines can stand in (see Oracle).         ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

import asyncio
import httpx
import json
import re
import hashlib
import logging
from typing import Optional, Dict, Any, List, Union, Protocol, runtime_checkable
from dataclasses import dataclass
from pathlib import Path

from ..exceptions import OracleTransportError, OracleResponseError

logger = logging.getLogger(__name__)


# =============================================================================
# ORACLE PROTOCOL
# =============================================================================

@runtime_checkable
class Oracle(Protocol):
    """
    Contract consumed by the candidate generator.

    Both coroutines should raise an OracleError subclass on transport failure
    or unusable output, never return truncated content silently.
    Any other exception is treated the same way by the generator.
    """

    async def complete(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        ...

    async def complete_structured(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
    ) -> Dict[str, Any]:
        ...


# =============================================================================
# MODEL CONFIGURATION
# =============================================================================

@dataclass
class ModelConfig:
    """LLM model settings."""
    name: str                      # e.g. "qwen2.5-coder:14b"
    temperature: float = 0.7       # 0 = deterministic, 1 = creative
    max_tokens: int = 4096         # Max output tokens
    top_p: float = 0.9             # Nucleus sampling
    top_k: int = 40                # Top-k sampling
    repeat_penalty: float = 1.1


# Predefined models per role
MODELS = {
    # Designer: proposes new agent designs, wants variety
    "designer": ModelConfig(
        name="qwen2.5-coder:14b",
        temperature=0.8,
        max_tokens=8192,
    ),

    # Critic: refinement rounds, more deterministic
    "critic": ModelConfig(
        name="qwen2.5-coder:14b",
        temperature=0.3,
        max_tokens=8192,
    ),

    # Fast: smoke tests and quick checks
    "fast": ModelConfig(
        name="qwen2.5:3b",
        temperature=0.1,
        max_tokens=512,
    ),
}


def resolve_model(model: Union[ModelConfig, str]) -> ModelConfig:
    if isinstance(model, str):
        return MODELS.get(model, ModelConfig(name=model))
    return model


# =============================================================================
# JSON EXTRACTION
# =============================================================================

_JSON_PATTERNS = [
    r'```json\s*([\s\S]*?)\s*```',  # Markdown JSON block
    r'```\s*([\s\S]*?)\s*```',       # Any code block
    r'\{[\s\S]*\}',                   # Raw JSON object
]


def extract_json(response: str) -> Any:
    """
    Parse JSON out of an LLM answer: direct, fenced, or embedded.

    Raises:
        OracleResponseError: nothing parseable found
    """
    try:
        return json.loads(response)
    except json.JSONDecodeError:
        pass

    for pattern in _JSON_PATTERNS:
        match = re.search(pattern, response)
        if match:
            try:
                json_str = match.group(1) if '```' in pattern else match.group(0)
                return json.loads(json_str)
            except (json.JSONDecodeError, IndexError):
                continue

    logger.error(f"Cannot parse JSON from: {response[:500]}...")
    raise OracleResponseError("Failed to parse JSON from LLM response", raw_response=response)


# =============================================================================
# OLLAMA ORACLE
# =============================================================================

class OllamaOracle:
    """
    Async oracle over the Ollama HTTP API.

    Features:
    - Optional local caching of plain completions
    - Retry with exponential backoff on transport errors
    - Structured JSON parsing
    """

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: Union[ModelConfig, str] = "designer",
        cache_dir: Optional[Path] = None,
        enable_cache: bool = False,
        timeout: float = 300.0,
        max_attempts: int = 3,
        retry_delay: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url: Ollama base URL (default localhost:11434)
            model: ModelConfig or key in MODELS
            cache_dir: Directory for cached completions
            enable_cache: Cache plain completions (structured ones never are)
            timeout: Request timeout in seconds
            max_attempts: Attempts per request on transport errors
            retry_delay: Base delay of the exponential backoff, seconds
            transport: Custom httpx transport (tests, proxies)
        """
        self.base_url = base_url.rstrip("/")
        self.model = resolve_model(model)
        self.enable_cache = enable_cache
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)
        self.retry_delay = retry_delay
        self._transport = transport

        if cache_dir:
            self.cache_dir = Path(cache_dir)
        else:
            self.cache_dir = Path.home() / ".cache" / "meta-agent-search"

        if enable_cache:
            self.cache_dir.mkdir(parents=True, exist_ok=True)

        self._client: Optional[httpx.AsyncClient] = None

        self.stats = {
            "requests": 0,
            "cache_hits": 0,
            "tokens_generated": 0,
            "errors": 0,
        }

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                limits=httpx.Limits(max_connections=10),
                transport=self._transport,
            )
        return self._client

    async def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
        model: Optional[Union[ModelConfig, str]] = None,
        use_cache: bool = True,
        json_format: bool = False,
        **options,
    ) -> str:
        """
        Generate a completion.

        Args:
            prompt: User prompt
            system: System prompt
            model: Override the client's model
            use_cache: Use the local cache if enabled
            json_format: Ask Ollama to constrain output to JSON
            **options: Extra Ollama options

        Raises:
            OracleTransportError: every attempt failed
            OracleResponseError: the answer has no "response" text
        """
        model = resolve_model(model) if model is not None else self.model

        cache_key = None
        if self.enable_cache and use_cache:
            cache_key = self._cache_key(prompt, model.name, system)
            cached = self._load_cache(cache_key)
            if cached is not None:
                self.stats["cache_hits"] += 1
                logger.debug(f"Cache hit: {cache_key[:8]}...")
                return cached

        payload = {
            "model": model.name,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": model.temperature,
                "num_predict": model.max_tokens,
                "top_p": model.top_p,
                "top_k": model.top_k,
                "repeat_penalty": model.repeat_penalty,
            }
        }
        if system:
            payload["system"] = system
        if json_format:
            payload["format"] = "json"
        payload["options"].update(options)

        self.stats["requests"] += 1
        result = await self._post_with_retry("/api/generate", payload)

        text = result.get("response") if isinstance(result, dict) else None
        if not isinstance(text, str):
            raise OracleResponseError("Ollama answer has no 'response' text", raw_response=str(result))
        if result.get("done_reason") == "length":
            raise OracleResponseError("Ollama answer was truncated at max_tokens", raw_response=text)

        self.stats["tokens_generated"] += result.get("eval_count", 0)

        if cache_key and text:
            self._save_cache(cache_key, text)

        return text

    async def _post_with_retry(self, path: str, payload: Dict[str, Any]) -> Any:
        for attempt in range(self.max_attempts):
            try:
                client = await self._get_client()
                response = await client.post(f"{self.base_url}{path}", json=payload)
                response.raise_for_status()
                return response.json()

            except httpx.HTTPError as e:
                self.stats["errors"] += 1
                logger.warning(f"Ollama error (attempt {attempt + 1}/{self.max_attempts}): {e}")

                if attempt < self.max_attempts - 1:
                    await asyncio.sleep(self.retry_delay * 2 ** attempt)
                else:
                    raise OracleTransportError(f"Ollama request failed: {e}") from e

            except ValueError as e:
                raise OracleResponseError(f"Ollama returned invalid JSON: {e}") from e

    # =========================================================================
    # ORACLE PROTOCOL
    # =========================================================================

    async def complete(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        return await self.generate(prompt, system=system_prompt)

    async def complete_structured(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Generate and parse a JSON object.

        Raises:
            OracleTransportError: transport failure
            OracleResponseError: no JSON object in the answer
        """
        json_prompt = prompt.strip()
        if not json_prompt.endswith("JSON"):
            json_prompt += "\n\nRespond with valid JSON only, no explanation."

        response = await self.generate(json_prompt, system=system_prompt, use_cache=False, json_format=True)
        data = extract_json(response)

        if not isinstance(data, dict):
            raise OracleResponseError(
                f"Expected a JSON object, got {type(data).__name__}", raw_response=response
            )
        return data

    # =========================================================================
    # MODELS
    # =========================================================================

    async def list_models(self) -> List[str]:
        """Models available on the Ollama server."""
        try:
            client = await self._get_client()
            response = await client.get(f"{self.base_url}/api/tags")
            response.raise_for_status()
            models = response.json().get("models", [])
            return [m["name"] for m in models]
        except httpx.HTTPError as e:
            logger.error(f"Cannot list models: {e}")
            return []

    async def ensure_model(self, model_name: Optional[str] = None) -> bool:
        """True if the (default) model is available."""
        model_name = model_name or self.model.name
        models = await self.list_models()
        return any(model_name in m for m in models)

    # =========================================================================
    # CACHE
    # =========================================================================

    def _cache_key(self, prompt: str, model: str, system: Optional[str]) -> str:
        content = f"{model}:{system or ''}:{prompt}"
        return hashlib.sha256(content.encode()).hexdigest()

    def _load_cache(self, key: str) -> Optional[str]:
        cache_file = self.cache_dir / f"{key}.txt"
        if cache_file.exists():
            return cache_file.read_text(encoding="utf-8")
        return None

    def _save_cache(self, key: str, content: str):
        cache_file = self.cache_dir / f"{key}.txt"
        cache_file.write_text(content, encoding="utf-8")

    def clear_cache(self):
        if self.cache_dir.exists():
            for f in self.cache_dir.glob("*.txt"):
                f.unlink()
            logger.info("Cache cleared")

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def close(self):
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def get_stats(self) -> Dict[str, Any]:
        return {
            **self.stats,
            "cache_hit_rate": (
                self.stats["cache_hits"] / max(1, self.stats["requests"] + self.stats["cache_hits"])
            ),
        }

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.close()
