"""Fake checkpoint store for testing."""

from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional, Tuple

from contentflow.orchestration.checkpoints import CheckpointStore
from contentflow.orchestration.state import Step


class InMemoryCheckpointStore(CheckpointStore):
    """Checkpoints in a dict keyed by (content_id, run_id)."""

    def __init__(self, fail_save: bool = False):
        self.runs: Dict[Tuple[str, Optional[str]], Dict[Step, Dict[str, Any]]] = {}
        self.fail_save = fail_save
        self.saved: List[Step] = []
        self.cleared: List[Tuple[str, Optional[str]]] = []

    def load(self, content_id: str, run_id: Optional[str] = None) -> Dict[Step, Dict[str, Any]]:
        return copy.deepcopy(self.runs.get((content_id, run_id), {}))

    def save(
        self,
        content_id: str,
        step: Step,
        output: Dict[str, Any],
        run_id: Optional[str] = None,
    ) -> None:
        if self.fail_save:
            raise ConnectionError("Simulated checkpoint failure")
        self.runs.setdefault((content_id, run_id), {})[step] = copy.deepcopy(output)
        self.saved.append(step)

    def clear(self, content_id: str, run_id: Optional[str] = None) -> None:
        self.runs.pop((content_id, run_id), None)
        self.cleared.append((content_id, run_id))
