"""
Orchestration for the summarization pipeline.

The router is an explicit state machine over WorkflowState; the workflow
wraps it with step retries, checkpoints and failure classification.
"""

from .checkpoints import CheckpointStore, RedisCheckpointStore, checkpoint_key
from .retry import RetryPolicy, is_retryable, run_with_retry
from .router import Router, phase, route
from .state import Step, WorkflowState
from .tools import Tool, ToolRegistry, build_tools, tool_arguments
from .workflow import SummarizationWorkflow, build_instruction, classify_failure

__all__ = [
    "CheckpointStore",
    "RedisCheckpointStore",
    "checkpoint_key",
    "RetryPolicy",
    "is_retryable",
    "run_with_retry",
    "Router",
    "phase",
    "route",
    "Step",
    "WorkflowState",
    "Tool",
    "ToolRegistry",
    "build_tools",
    "tool_arguments",
    "SummarizationWorkflow",
    "build_instruction",
    "classify_failure",
]
