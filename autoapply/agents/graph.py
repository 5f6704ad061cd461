import uuid
from typing import Callable

from langgraph.graph import END, START, StateGraph

from autoapply.agents.nodes import (
    application_decision,
    application_processor,
    resume_parser,
)
from autoapply.agents.nodes.application_decision import ApplicationDecisionStage
from autoapply.agents.nodes.cover_letter import CoverLetterStage
from autoapply.agents.nodes.fit_analyzer import FitAnalysisStage
from autoapply.agents.nodes.job_ranker import JobRankingStage
from autoapply.agents.nodes.profile_optimizer import ProfileOptimizationStage
from autoapply.agents.nodes.resume_parser import ResumeStage
from autoapply.agents.state import WorkflowInput, WorkflowState
from autoapply.core.config import Settings, get_settings
from autoapply.core.enums import LogLevel, WorkflowStatus
from autoapply.core.logging import get_logger
from autoapply.core.models import LogEntry
from autoapply.services.llm import LLMGateway, build_llm_gateway
from autoapply.services.resume_text import ExtractedResume, ResumeFile, extract_resume_text

logger = get_logger(__name__)

COMPLETED_MESSAGE = "Auto-apply workflow completed successfully"


def _route_from_start(state: WorkflowState) -> str:
    if state.get("resume_file") is not None:
        return "resume_parser"
    if state.get("jobs"):
        return "application_decision"
    return "finalize"


def _route_after_resume(state: WorkflowState) -> str:
    if state.get("jobs"):
        return "application_decision"
    return "finalize"


def _route_next_application(state: WorkflowState) -> str:
    if state.get("profile") is None:
        return "finalize"
    if state.get("cursor", 0) < len(state.get("applications") or []):
        return "application_processor"
    return "finalize"


async def finalize_node(state: WorkflowState) -> dict:
    return {
        "status": WorkflowStatus.COMPLETED,
        "logs": [LogEntry(message=COMPLETED_MESSAGE, level=LogLevel.SUCCESS)],
    }


class WorkflowOrchestrator:
    """Runs resume parsing, job selection and per-application drafting as one graph.

    The orchestrator holds only stages and the compiled graph; every call to
    :meth:`run` builds its own state, so concurrent runs never share one.
    """

    def __init__(
        self,
        gateway: LLMGateway,
        *,
        settings: Settings | None = None,
        extractor: Callable[[ResumeFile], ExtractedResume] = extract_resume_text,
    ) -> None:
        settings = settings or get_settings()
        self.settings = settings
        self.gateway = gateway
        self.resume_stage = ResumeStage(
            gateway,
            default_min_salary=settings.default_min_salary,
            extractor=extractor,
        )
        self.profile_stage = ProfileOptimizationStage(gateway)
        self.ranking_stage = JobRankingStage(gateway)
        self.fit_stage = FitAnalysisStage(gateway, threshold=settings.match_threshold)
        self.cover_letter_stage = CoverLetterStage(gateway)
        self.decision_stage = ApplicationDecisionStage(
            gateway,
            self.ranking_stage,
            fit_analysis=self.fit_stage,
            gating=settings.application_gating,
            threshold=settings.match_threshold,
            default_max_applications=settings.max_applications,
        )
        self.graph = self._build_graph()

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "WorkflowOrchestrator":
        settings = settings or get_settings()
        return cls(build_llm_gateway(settings), settings=settings)

    @property
    def demo_mode(self) -> bool:
        return not self.gateway.available

    def _build_graph(self):
        graph = StateGraph(WorkflowState)

        graph.add_node("resume_parser", resume_parser.make_node(self.resume_stage))
        graph.add_node("application_decision", application_decision.make_node(self.decision_stage))
        graph.add_node(
            "application_processor",
            application_processor.make_node(self.fit_stage, self.cover_letter_stage),
        )
        graph.add_node("finalize", finalize_node)

        graph.add_conditional_edges(
            START,
            _route_from_start,
            {
                "resume_parser": "resume_parser",
                "application_decision": "application_decision",
                "finalize": "finalize",
            },
        )
        graph.add_conditional_edges(
            "resume_parser",
            _route_after_resume,
            {
                "application_decision": "application_decision",
                "finalize": "finalize",
            },
        )
        for source in ("application_decision", "application_processor"):
            graph.add_conditional_edges(
                source,
                _route_next_application,
                {
                    "application_processor": "application_processor",
                    "finalize": "finalize",
                },
            )
        graph.add_edge("finalize", END)

        return graph.compile()

    def _initial_state(self, workflow_input: WorkflowInput) -> WorkflowState:
        return {
            "run_id": str(uuid.uuid4()),
            "resume_file": workflow_input.resume_file,
            "max_applications": (
                self.settings.max_applications
                if workflow_input.max_applications is None
                else max(0, workflow_input.max_applications)
            ),
            "profile": workflow_input.profile,
            "jobs": list(workflow_input.jobs or []),
            "applications": [],
            "current_job_index": 0,
            "cursor": 0,
            "status": WorkflowStatus.IDLE,
            "errors": [],
            "logs": [],
        }

    async def run(self, workflow_input: WorkflowInput | None = None) -> WorkflowState:
        state = self._initial_state(workflow_input or WorkflowInput())
        # One graph step per node plus one per queued application.
        step_budget = len(state["jobs"]) + 10
        last: WorkflowState = state
        try:
            async for snapshot in self.graph.astream(
                state,
                config={"recursion_limit": step_budget},
                stream_mode="values",
            ):
                last = snapshot
        except Exception as exc:
            message = str(exc) or exc.__class__.__name__
            logger.exception("Workflow execution error", extra={"run_id": state["run_id"]})
            failed: WorkflowState = dict(last)
            failed["status"] = WorkflowStatus.ERROR
            failed["errors"] = [*(last.get("errors") or []), f"Workflow failed: {message}"]
            failed["logs"] = [
                *(last.get("logs") or []),
                LogEntry(message=f"Workflow execution failed: {message}", level=LogLevel.ERROR),
            ]
            return failed

        logger.info(
            "Workflow finished with %s applications",
            len(last.get("applications") or []),
            extra={"run_id": state["run_id"], "errors": len(last.get("errors") or [])},
        )
        return last


async def run_workflow(workflow_input: WorkflowInput, settings: Settings | None = None) -> WorkflowState:
    orchestrator = WorkflowOrchestrator.from_settings(settings)
    return await orchestrator.run(workflow_input)
