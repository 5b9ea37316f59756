"""Response parsing for summary generation."""
from __future__ import annotations

import json
import logging
from typing import Any, Iterator, Mapping, Optional, Union

from pydantic import ValidationError

from contentflow.errors import SchemaValidationError
from contentflow.models import Summary

logger = logging.getLogger(__name__)


def validate_summary(value: Union[Summary, Mapping[str, Any]], *, stage: str = "summarize") -> Summary:
    """Validate a dict (or re-validate a model) against the Summary contract.

    Raises:
        SchemaValidationError: if the value does not match
    """
    if isinstance(value, Summary):
        value = value.model_dump(by_alias=True)
    if not isinstance(value, Mapping):
        raise SchemaValidationError(
            f"Summary must be a JSON object, got {type(value).__name__}", stage=stage
        )
    try:
        return Summary.model_validate(dict(value))
    except ValidationError as e:
        raise SchemaValidationError(_describe(e), stage=stage) from e


class ResponseParser:
    """Parses LLM responses into a validated Summary.

    Handles JSON extraction from wrapped output (code fences, leading prose).
    Anything that does not validate is rejected; there is no best-effort
    fallback.
    """

    def parse(self, raw: Optional[str], *, label: str = "Response") -> Summary:
        """Parse raw LLM response into a Summary.

        Args:
            raw: Raw text from LLM
            label: Description for logging (e.g., "Attempt 2")

        Raises:
            SchemaValidationError: if no candidate object validates
        """
        text = (raw or "").strip()
        if not text:
            raise SchemaValidationError("Model returned empty output", raw=raw)

        logger.debug("Model output received", extra={"label": label, "output": text})

        last_error = "no JSON object found in model output"
        for candidate in self._candidates(text):
            try:
                data = json.loads(candidate)
            except json.JSONDecodeError:
                continue
            try:
                return validate_summary(data)
            except SchemaValidationError as e:
                last_error = e.message

        logger.warning(
            "Model output failed schema validation",
            extra={"label": label, "error": last_error},
        )
        raise SchemaValidationError(last_error, raw=raw)

    def _candidates(self, text: str) -> Iterator[str]:
        """Yield substrings that may hold the JSON object, best first.

        Heuristics:
        - The whole text
        - Contents of ```json ... ``` fences
        - Each balanced top-level ``{...}`` object
        """
        yield text

        if "```" in text:
            parts = text.split("```")
            for i in range(1, len(parts), 2):  # odd indices are inside fences
                block = parts[i]
                if "\n" in block:
                    lang, rest = block.split("\n", 1)
                    if "{" not in lang:
                        block = rest
                yield block.strip()

        yield from self._balanced_objects(text)

    def _balanced_objects(self, src: str) -> Iterator[str]:
        n = len(src)
        i = 0
        while i < n:
            if src[i] != "{":
                i += 1
                continue
            depth = 0
            in_str = False
            esc = False
            j = i
            end = None
            while j < n:
                ch = src[j]
                if in_str:
                    if esc:
                        esc = False
                    elif ch == "\\":
                        esc = True
                    elif ch == '"':
                        in_str = False
                elif ch == '"':
                    in_str = True
                elif ch == "{":
                    depth += 1
                elif ch == "}":
                    depth -= 1
                    if depth == 0:
                        end = j
                        break
                j += 1
            if end is None:
                return
            yield src[i : end + 1]
            i = end + 1


def _describe(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        loc = ".".join(str(p) for p in item.get("loc", ())) or "summary"
        parts.append(f"{loc}: {item.get('msg')}")
    return "; ".join(parts)
