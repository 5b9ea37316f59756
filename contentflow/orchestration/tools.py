"""
Tool contracts for the workflow steps.

Each worker is exposed as a named tool with a pydantic parameter model. The
router builds arguments from state and invokes tools through the registry;
the same schemas can be exported in OpenAI function-calling format.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from contentflow.errors import StorageError, ToolArgumentError
from contentflow.models import (
    CleanedContent,
    ContentType,
    FetchedContent,
    StoreResult,
)
from contentflow.summarization.service import SummaryService
from contentflow.workers.cleaner import ContentCleaner
from contentflow.workers.fetcher import ContentFetcher
from contentflow.workers.storage import SummaryStorage

from .state import Step, WorkflowState

logger = logging.getLogger(__name__)


# ==================== Parameter Models ====================

class _ToolParams(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class FetchParams(_ToolParams):
    content_type: ContentType = Field(
        alias="contentType", description="Type of content (article, interview, publication)"
    )
    slug: str = Field(min_length=1, description="Slug of the content")
    content_id: Optional[str] = Field(
        default=None, alias="contentId", description="Id of the content document"
    )


class CleanParams(_ToolParams):
    content_type: ContentType = Field(alias="contentType")
    slug: str = Field(min_length=1)
    fetched: FetchedContent = Field(description="Output of the content fetcher")


class SummarizeParams(_ToolParams):
    content: CleanedContent = Field(description="Cleaned content to summarize")
    instruction: str = ""


class StoreParams(_ToolParams):
    content_id: str = Field(alias="contentId", min_length=1)
    content_type: ContentType = Field(alias="contentType")
    slug: str = Field(min_length=1)
    # Validated by the storage worker itself before any write
    summary: Dict[str, Any] = Field(description="Summary object to persist")


# ==================== Tools ====================

@dataclass
class Tool:
    name: str
    description: str
    step: Step
    parameters: Type[BaseModel]
    handler: Callable[[Any], Any]

    def invoke(self, arguments: Mapping[str, Any]) -> Any:
        """Validate arguments against the parameter model and run the handler."""
        try:
            params = self.parameters.model_validate(dict(arguments))
        except ValidationError as e:
            raise ToolArgumentError(
                f"Invalid arguments for {self.name}: {e.error_count()} validation error(s)",
                stage=self.step.value,
            ) from e
        return self.handler(params)

    def json_schema(self) -> Dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters.model_json_schema(by_alias=True),
            },
        }


class ToolRegistry:
    """Tools indexed by name and by the step they perform."""

    def __init__(self, tools: List[Tool]):
        self._by_name: Dict[str, Tool] = {}
        self._by_step: Dict[Step, Tool] = {}
        for tool in tools:
            if tool.name in self._by_name:
                raise ValueError(f"Duplicate tool name: {tool.name}")
            self._by_name[tool.name] = tool
            self._by_step[tool.step] = tool

    def get(self, name: str) -> Tool:
        try:
            return self._by_name[name]
        except KeyError:
            raise KeyError(f"Unknown tool: {name}") from None

    def for_step(self, step: Step) -> Tool:
        try:
            return self._by_step[step]
        except KeyError:
            raise KeyError(f"No tool registered for step: {step.value}") from None

    def names(self) -> List[str]:
        return list(self._by_name)

    def as_openai_tools(self) -> List[Dict[str, Any]]:
        return [tool.json_schema() for tool in self._by_name.values()]


def build_tools(
    fetcher: ContentFetcher,
    cleaner: ContentCleaner,
    summarizer: SummaryService,
    storage: SummaryStorage,
) -> ToolRegistry:
    """Wire the four workers into a tool registry."""

    def fetch(params: FetchParams) -> FetchedContent:
        return fetcher.fetch(params.content_type, params.slug, params.content_id)

    def clean(params: CleanParams) -> CleanedContent:
        return cleaner.clean(params.content_type, params.slug, params.fetched)

    def summarize(params: SummarizeParams):
        return summarizer.summarize(params.content, params.instruction)

    def store(params: StoreParams) -> StoreResult:
        result = storage.store_summary(
            params.content_id, params.content_type, params.slug, params.summary
        )
        if not result.success:
            # Raise so the step can be retried; the summary id is deterministic
            raise StorageError(
                result.message,
                summary_id=result.summary_id,
                summary_written=result.summary_written,
                retryable=result.retryable,
            )
        return result

    return ToolRegistry([
        Tool(
            name="content_fetcher_tool",
            description="Retrieves content from the CMS based on content type and slug.",
            step=Step.FETCH,
            parameters=FetchParams,
            handler=fetch,
        ),
        Tool(
            name="content_cleaner_tool",
            description=(
                "Cleans raw content from the CMS: flattens rich text, fixes formatting "
                "and structures data for summarization."
            ),
            step=Step.CLEAN,
            parameters=CleanParams,
            handler=clean,
        ),
        Tool(
            name="summarizer_tool",
            description="Summarizes cleaned content in a professional, journalistic tone.",
            step=Step.SUMMARIZE,
            parameters=SummarizeParams,
            handler=summarize,
        ),
        Tool(
            name="storage_tool",
            description=(
                "Saves an AI-generated summary into the CMS and links it to the "
                "original content."
            ),
            step=Step.STORE,
            parameters=StoreParams,
            handler=store,
        ),
    ])


def tool_arguments(step: Step, state: WorkflowState) -> Dict[str, Any]:
    """Arguments for the tool performing ``step``, taken from workflow state."""
    ref = state.reference
    if step is Step.FETCH:
        return {"contentType": ref.content_type, "slug": ref.slug, "contentId": ref.content_id}
    if step is Step.CLEAN:
        return {"contentType": ref.content_type, "slug": ref.slug, "fetched": state.fetched}
    if step is Step.SUMMARIZE:
        return {"content": state.cleaned, "instruction": state.instruction}
    if step is Step.STORE:
        summary = state.summary.model_dump(by_alias=True) if state.summary is not None else None
        return {
            "contentId": ref.content_id,
            "contentType": ref.content_type,
            "slug": ref.slug,
            "summary": summary,
        }
    raise ValueError(f"Unknown step: {step}")
