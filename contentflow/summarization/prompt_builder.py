"""Prompt building for summary generation."""
from __future__ import annotations

import json
from textwrap import dedent
from typing import List, Optional

from contentflow.models import CleanedContent


class PromptBuilder:
    """Builds the system and user prompts for the summarizer.

    The system prompt fixes tone and the output contract; the user prompt
    carries the workflow instruction and the cleaned content.
    """

    def __init__(self, instructions: Optional[str] = None, max_body_chars: int = 24000):
        """Initialize prompt builder.

        Args:
            instructions: System instructions for the LLM. If None, uses default.
            max_body_chars: Body text beyond this length is truncated
        """
        self._instructions = instructions or self._build_default_instructions()
        self.max_body_chars = max_body_chars

    @property
    def system_prompt(self) -> str:
        return self._instructions

    def _build_default_instructions(self) -> str:
        """Build default editorial instructions."""
        return dedent(
            """
            You are an expert content summarizer for business and energy publications.

            Rules:
            - Write in a professional, neutral, journalistic tone.
            - Do not add opinions, speculation or facts that are not in the source.
            - Extract the main topic, key insights, implications and, when present, notable quotes or statistics.
            - Derive tags from the content and its sectors, regions and tags.
            - Respond with valid JSON only. No prose, no markdown, no code fences.

            Output must be a single JSON object with exactly these fields:
            {
              "shortSummary": string,      // one or two sentences
              "mediumSummary": string,     // one paragraph, at most 150 words
              "keyPoints": string[],       // 3 to 6 key points, at least one
              "tags": string[],            // short topical tags
              "sentiment": string,         // "positive", "neutral" or "negative"
              "topics": string[]           // main topics covered
            }
            """
        ).strip()

    def build(self, content: CleanedContent, instruction: str = "") -> str:
        """Build the user prompt for one content document."""
        sections: List[str] = []
        if instruction.strip():
            sections.append(instruction.strip())

        meta = content.metadata
        header = [
            f"Content type: {meta.type.value}",
            f"Title: {content.title}",
        ]
        if content.dek:
            header.append(f"Dek: {content.dek}")
        if meta.published_at:
            header.append(f"Published: {meta.published_at}")
        if meta.sectors:
            header.append(f"Sectors: {', '.join(meta.sectors)}")
        if meta.regions:
            header.append(f"Regions: {', '.join(meta.regions)}")
        if meta.tags:
            header.append(f"Tags: {', '.join(meta.tags)}")

        interviewee = content.interviewee
        if interviewee and interviewee.name:
            who = interviewee.name
            position = ", ".join(p for p in (interviewee.role, interviewee.organization) if p)
            if position:
                who = f"{who} ({position})"
            header.append(f"Interviewee: {who}")
            if interviewee.bio:
                header.append(f"Interviewee bio: {interviewee.bio}")

        sections.append("\n".join(header))

        body = content.body
        if len(body) > self.max_body_chars:
            body = body[: self.max_body_chars].rsplit(" ", 1)[0] + " ..."
        if body:
            sections.append(f"<content>\n{body}\n</content>")
        else:
            sections.append(
                "<content>\n(no body text; summarize from the title, dek and metadata only)\n</content>"
            )

        sections.append("Return the JSON object now.")
        return "\n\n".join(sections)

    def build_retry(self, content: CleanedContent, instruction: str, error: str, previous: Optional[str]) -> str:
        """Build a prompt asking the model to correct a rejected answer."""
        prompt = self.build(content, instruction)
        feedback = [
            "Your previous answer was rejected because it did not match the required JSON format.",
            f"Validation error: {error}",
        ]
        if previous:
            feedback.append(f"Previous answer: {json.dumps(previous[:2000])}")
        feedback.append("Respond again with only the corrected JSON object.")
        return prompt + "\n\n" + "\n".join(feedback)
