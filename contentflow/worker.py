"""
Summarization worker entry point.

Starts the Celery worker for summarization tasks.
"""

from __future__ import annotations

from contentflow.celery_config import celery_app, configure_for_worker
from contentflow.config import configure_logging, get_settings

# Import tasks to register them
from contentflow import tasks  # noqa: F401

configure_for_worker("summarization")

settings = get_settings()
configure_logging(settings)


def main() -> None:
    celery_app.worker_main(
        argv=[
            "worker",
            "--queues=summarization,default",
            f"--concurrency={settings.celery_concurrency}",
            f"--loglevel={settings.log_level}",
            "--hostname=summarization-worker@%h",
        ]
    )


if __name__ == "__main__":
    main()
