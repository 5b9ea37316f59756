"""
Step checkpoints.

Each completed step's output is stored under a key derived from the content
id and the run id, so a retried run can resume after the last completed step
instead of starting again.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import redis

from contentflow.config import PipelineSettings

from .state import Step

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "contentflow:checkpoint"


def checkpoint_key(prefix: str, content_id: str, run_id: Optional[str] = None) -> str:
    """Compose a namespaced checkpoint key."""
    parts = [part for part in (content_id, run_id) if part]
    return ":".join([prefix, *parts])


class CheckpointStore(ABC):
    """Persists step outputs for one workflow run."""

    @abstractmethod
    def load(self, content_id: str, run_id: Optional[str] = None) -> Dict[Step, Dict[str, Any]]:
        """Return serialized outputs of completed steps, keyed by step."""
        pass

    @abstractmethod
    def save(
        self,
        content_id: str,
        step: Step,
        output: Dict[str, Any],
        run_id: Optional[str] = None,
    ) -> None:
        """Record one completed step."""
        pass

    @abstractmethod
    def clear(self, content_id: str, run_id: Optional[str] = None) -> None:
        """Forget all checkpoints of a run."""
        pass


class RedisCheckpointStore(CheckpointStore):
    """Checkpoints as one Redis hash per run (field = step, value = JSON)."""

    def __init__(
        self,
        client: redis.Redis,
        *,
        prefix: str = DEFAULT_PREFIX,
        ttl_seconds: int = 86400,
    ) -> None:
        self.client = client
        self.prefix = prefix
        self.ttl_seconds = ttl_seconds

    @classmethod
    def from_settings(cls, settings: PipelineSettings) -> "RedisCheckpointStore":
        client = redis.Redis.from_url(settings.redis.url(), decode_responses=True)
        return cls(client, ttl_seconds=settings.checkpoint_ttl_seconds)

    def load(self, content_id: str, run_id: Optional[str] = None) -> Dict[Step, Dict[str, Any]]:
        key = checkpoint_key(self.prefix, content_id, run_id)
        raw = self.client.hgetall(key) or {}
        restored: Dict[Step, Dict[str, Any]] = {}
        for field, value in raw.items():
            try:
                restored[Step(field)] = json.loads(value)
            except (ValueError, TypeError):
                logger.warning(
                    "Ignoring unreadable checkpoint entry",
                    extra={"key": key, "field": field},
                )
        return restored

    def save(
        self,
        content_id: str,
        step: Step,
        output: Dict[str, Any],
        run_id: Optional[str] = None,
    ) -> None:
        key = checkpoint_key(self.prefix, content_id, run_id)
        pipe = self.client.pipeline()
        pipe.hset(key, step.value, json.dumps(output))
        pipe.expire(key, self.ttl_seconds)
        pipe.execute()
        logger.debug("Checkpoint saved", extra={"key": key, "step": step.value})

    def clear(self, content_id: str, run_id: Optional[str] = None) -> None:
        self.client.delete(checkpoint_key(self.prefix, content_id, run_id))
