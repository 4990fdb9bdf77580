import enum

import structlog

logger = structlog.get_logger(__name__)


class WorkflowState(str, enum.Enum):
    RECEIVED = "received"
    VALIDATING = "validating"
    PRICING = "pricing"
    PERSISTING = "persisting"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATES = {WorkflowState.COMPLETED, WorkflowState.FAILED}


class WorkflowStep:
    def __init__(self, state: WorkflowState, name: str, action):
        self.state = state
        self.name = name
        self.action = action


class OrderWorkflow:
    """
    Runs steps one after another, each inside the state it belongs to.

    The first exception moves the workflow to FAILED and is re-raised as is;
    nothing is retried and no compensation runs. Finishing every step is the
    only way to reach COMPLETED.
    """

    def __init__(self):
        self.steps = []
        self.state = WorkflowState.RECEIVED
        self.failed_in = None
        self.error = None

    def add_step(self, state: WorkflowState, name: str, action):
        """Builder pattern: steps run in the order they are added."""
        self.steps.append(WorkflowStep(state, name, action))
        return self

    async def execute(self, ctx: dict):
        if self.state in TERMINAL_STATES:
            raise RuntimeError(f"Workflow already {self.state.value}")
        step = None
        try:
            for step in self.steps:
                self.state = step.state
                await step.action(ctx)
        except Exception as e:
            self.failed_in = self.state
            self.error = e
            self.state = WorkflowState.FAILED
            logger.warning(
                "order_workflow_failed",
                state=self.failed_in.value,
                step=step.name if step else None,
                error=str(e),
            )
            raise
        self.state = WorkflowState.COMPLETED
        return ctx
