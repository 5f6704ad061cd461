from autoapply.agents.graph import WorkflowOrchestrator, run_workflow
from autoapply.agents.state import WorkflowInput, WorkflowState

__all__ = ["WorkflowInput", "WorkflowOrchestrator", "WorkflowState", "run_workflow"]
