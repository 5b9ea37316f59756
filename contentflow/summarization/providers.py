"""LLM Provider abstraction for summary generation."""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional

import httpx

from contentflow.config import SummarizationSettings

logger = logging.getLogger(__name__)


@dataclass
class GenerationParams:
    """Sampling limits applied to every call."""

    temperature: float = 0.3
    max_tokens: int = 1000


class SummaryProvider(ABC):
    """Abstract base class for summary LLM providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name for identification."""
        pass

    @abstractmethod
    async def generate(self, prompt: str, *, system: Optional[str] = None) -> Optional[str]:
        """Generate a response for the given prompt.

        Args:
            prompt: User prompt
            system: Optional system instructions

        Returns:
            Generated text, or None if failed
        """
        pass


class ProviderChain:
    """Chain of providers with fallback support.

    Attempts generation using primary provider, falling back to
    secondary providers if primary fails.
    """

    def __init__(
        self,
        providers: List[SummaryProvider],
        max_retries: int = 2,
        session_fail_threshold: int = 5,
    ):
        """Initialize provider chain.

        Args:
            providers: List of providers in priority order
            max_retries: Maximum retries per provider
            session_fail_threshold: Failures before skipping provider for session
        """
        if not providers:
            raise ValueError("Provider chain requires at least one provider")

        self.providers = providers
        self.max_retries = max_retries
        self.session_fail_threshold = session_fail_threshold
        self._session_failures: Dict[str, int] = {}

    def reset_session(self) -> None:
        """Reset session failure counts (call at start of each workflow run)."""
        self._session_failures = {}

    async def generate(self, prompt: str, *, system: Optional[str] = None) -> Optional[str]:
        """Generate using best available provider.

        Returns:
            Generated text, or None if all providers failed
        """
        for provider in self._get_available_providers():
            for attempt in range(self.max_retries):
                try:
                    result = await provider.generate(prompt, system=system)
                    if result is not None and result.strip():
                        return result
                except Exception as e:
                    logger.warning(
                        f"Provider {provider.name} attempt {attempt + 1} failed: {e}"
                    )

            self._record_failure(provider.name)

        logger.error("All providers failed for generation")
        return None

    def _get_available_providers(self) -> List[SummaryProvider]:
        """Get providers not disabled for this session."""
        return [
            p for p in self.providers
            if self._session_failures.get(p.name, 0) < self.session_fail_threshold
        ]

    def _record_failure(self, provider_name: str) -> None:
        """Record a failure for a provider."""
        self._session_failures[provider_name] = (
            self._session_failures.get(provider_name, 0) + 1
        )
        if self._session_failures[provider_name] >= self.session_fail_threshold:
            logger.warning(
                f"Provider {provider_name} disabled for session "
                f"(reached {self.session_fail_threshold} failures)"
            )


class HTTPProvider(SummaryProvider):
    """HTTP-based LLM provider for OpenAI-compatible chat APIs."""

    def __init__(
        self,
        name: str,
        base_url: str,
        api_key: Optional[str] = None,
        model: str = "gpt-4o-mini",
        params: Optional[GenerationParams] = None,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize HTTP provider.

        Args:
            name: Provider name
            base_url: API base URL
            api_key: Optional API key
            model: Model name
            params: Temperature and output token cap
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self._name = name
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.model = model
        self.params = params or GenerationParams()
        self.timeout = timeout
        self._transport = transport

    @property
    def name(self) -> str:
        return self._name

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def generate(self, prompt: str, *, system: Optional[str] = None) -> Optional[str]:
        """Generate using the chat completions endpoint."""
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    f"{self.base_url}/v1/chat/completions",
                    headers=self._headers(),
                    json={
                        "model": self.model,
                        "messages": messages,
                        "temperature": self.params.temperature,
                        "max_tokens": self.params.max_tokens,
                        "response_format": {"type": "json_object"},
                    },
                )
                response.raise_for_status()

                result = response.json()
                return result["choices"][0]["message"]["content"]

        except (httpx.HTTPError, KeyError, IndexError, ValueError) as e:
            logger.error(f"HTTP generation failed: {e}", extra={"provider": self.name})
            return None


class HuggingFaceProvider(SummaryProvider):
    """HuggingFace Text Generation Inference provider."""

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        params: Optional[GenerationParams] = None,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize HuggingFace TGI provider.

        Args:
            base_url: TGI server URL
            api_key: Optional API key
            params: Temperature and output token cap
            timeout: Request timeout
            transport: Optional httpx transport
        """
        self._name = "huggingface"
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.params = params or GenerationParams()
        self.timeout = timeout
        self._transport = transport

    @property
    def name(self) -> str:
        return self._name

    async def generate(self, prompt: str, *, system: Optional[str] = None) -> Optional[str]:
        """Generate using TGI API."""
        inputs = f"{system.strip()}\n\n{prompt}" if system else prompt

        try:
            headers = {"Content-Type": "application/json"}
            if self.api_key:
                headers["Authorization"] = f"Bearer {self.api_key}"

            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    f"{self.base_url}/generate",
                    headers=headers,
                    json={
                        "inputs": inputs,
                        "parameters": {
                            "max_new_tokens": self.params.max_tokens,
                            # TGI rejects a temperature of exactly zero
                            "temperature": max(self.params.temperature, 0.01),
                            "return_full_text": False,
                        },
                    },
                )
                response.raise_for_status()

                result = response.json()
                return result.get("generated_text", "")

        except (httpx.HTTPError, ValueError, AttributeError) as e:
            logger.error(f"HuggingFace generation failed: {e}")
            return None


def build_provider_chain(settings: SummarizationSettings) -> ProviderChain:
    """Create the provider chain named by ``settings.providers``.

    ``huggingface`` maps to a TGI server; any other name is treated as an
    OpenAI-compatible endpoint at ``settings.api_base``.
    """
    params = GenerationParams(
        temperature=settings.temperature,
        max_tokens=settings.max_tokens,
    )
    providers: List[SummaryProvider] = []

    for name in settings.providers:
        if name == "huggingface":
            if not settings.huggingface_api_base:
                logger.warning("HUGGINGFACE_API_BASE not set; skipping huggingface provider")
                continue
            providers.append(
                HuggingFaceProvider(
                    base_url=settings.huggingface_api_base,
                    api_key=settings.api_key,
                    params=params,
                    timeout=settings.timeout,
                )
            )
        else:
            providers.append(
                HTTPProvider(
                    name=name,
                    base_url=settings.api_base,
                    api_key=settings.api_key,
                    model=settings.model,
                    params=params,
                    timeout=settings.timeout,
                )
            )

    return ProviderChain(providers=providers)
