"""
contentflow - AI content summarization pipeline.

Fetches a CMS document, cleans it, generates a structured summary with an
LLM and stores the summary back in the CMS, linked to the original.

Modules:
    config: Configuration management (pydantic-settings) and logging setup
    errors: Error taxonomy
    status: Task, phase and failure enums
    models: Pydantic models for documents, summaries and API payloads
    cms: Content store client (Sanity over HTTP)
    workers: Content fetcher, cleaner and storage worker
    summarization: Summarizer worker (prompts, providers, parsing)
    orchestration: Router, retries, checkpoints and the workflow entry point
    tasks: Celery tasks
    api: FastAPI trigger/status/summary endpoints
"""

__version__ = "0.1.0"
