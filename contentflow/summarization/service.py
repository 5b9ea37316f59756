"""SummaryService - the summarizer worker."""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

from contentflow.config import SummarizationSettings
from contentflow.errors import ProviderError, SchemaValidationError
from contentflow.models import CleanedContent, Summary

from .prompt_builder import PromptBuilder
from .providers import ProviderChain, SummaryProvider, build_provider_chain
from .response_parser import ResponseParser

logger = logging.getLogger(__name__)


class SummaryService:
    """Turns cleaned content into a validated Summary.

    Coordinates prompt building, generation and parsing. A response that
    does not match the Summary contract is retried with the validation error
    fed back to the model, up to ``max_attempts`` calls in total. It never
    returns a malformed summary and never writes anything.
    """

    def __init__(
        self,
        provider: SummaryProvider | ProviderChain,
        prompt_builder: Optional[PromptBuilder] = None,
        response_parser: Optional[ResponseParser] = None,
        max_attempts: int = 3,
        model_name: str = "default",
    ):
        """Initialize summary service.

        Args:
            provider: Provider or provider chain for LLM calls
            prompt_builder: Builds prompts for generation
            response_parser: Parses LLM responses
            max_attempts: LLM calls allowed per summary before giving up
            model_name: Model name for tracking
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.provider = provider
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.response_parser = response_parser or ResponseParser()
        self.max_attempts = max_attempts
        self.model_name = model_name

    def summarize(self, content: CleanedContent, instruction: str = "") -> Summary:
        """Generate a summary for cleaned content.

        Raises:
            ProviderError: no provider produced any output (retryable)
            SchemaValidationError: every attempt produced a malformed summary
        """
        if isinstance(self.provider, ProviderChain):
            self.provider.reset_session()

        system = self.prompt_builder.system_prompt
        prompt = self.prompt_builder.build(content, instruction)
        last_error: Optional[SchemaValidationError] = None

        for attempt in range(1, self.max_attempts + 1):
            raw = asyncio.run(self.provider.generate(prompt, system=system))
            if raw is None:
                raise ProviderError("All summary providers failed to generate output")

            try:
                summary = self.response_parser.parse(raw, label=f"Attempt {attempt}")
            except SchemaValidationError as e:
                last_error = e
                logger.warning(
                    "Summary rejected; retrying",
                    extra={
                        "attempt": attempt,
                        "max_attempts": self.max_attempts,
                        "error": e.message,
                        "title": content.title,
                    },
                )
                prompt = self.prompt_builder.build_retry(content, instruction, e.message, raw)
                continue

            logger.info(
                "Summary generated",
                extra={
                    "attempt": attempt,
                    "model_name": self.model_name,
                    "key_points": len(summary.key_points),
                    "tags": len(summary.tags),
                },
            )
            return summary

        assert last_error is not None
        raise SchemaValidationError(
            f"Summary failed validation after {self.max_attempts} attempts: {last_error.message}",
            raw=last_error.raw,
        )


def create_summary_service(settings: SummarizationSettings) -> SummaryService:
    """Factory function to create a configured SummaryService."""
    return SummaryService(
        provider=build_provider_chain(settings),
        prompt_builder=PromptBuilder(),
        response_parser=ResponseParser(),
        max_attempts=settings.max_attempts,
        model_name=settings.model,
    )
