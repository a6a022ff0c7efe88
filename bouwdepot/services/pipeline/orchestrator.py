"""Sequential orchestrator for validation pipeline steps."""

import asyncio
import contextlib
from typing import Any, BinaryIO, List, Optional, Sequence

from bouwdepot.core.exceptions import ConfigurationError, PipelineStepError
from bouwdepot.core.unified_llm import UnifiedLLMClient
from bouwdepot.models.validation_models import (
    IssueSeverity,
    PipelineTermination,
    ProcessingStepStatus,
    StepExecutionStatus,
    ValidationOutcome,
    ValidationState,
)
from bouwdepot.services.pipeline.base_step import BasePipelineStep, StepPrompt
from bouwdepot.utils.logging import get_logger

LOGGER = get_logger(__name__)

INITIALIZE_STEP = "InitializePipeline"
COMPLETE_STEP = "CompletePipeline"


class StepCancelledError(Exception):
    """Raised inside the orchestrator when the cancellation signal fires mid-step."""


class ValidationPipeline:
    """Runs steps in ascending order against one validation state.

    Steps run strictly one after another. A failing step is recorded as an
    issue and halts the run; a step that leaves the outcome Invalid or Error
    halts it as well. Failures outside the step loop propagate.
    """

    def __init__(self, steps: Sequence[BasePipelineStep], llm_client: UnifiedLLMClient):
        names = [step.name for step in steps]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ConfigurationError(f"Duplicate pipeline step names: {duplicates}")

        # sorted() is stable, so equal orders keep registration order
        self.steps: List[BasePipelineStep] = sorted(steps, key=lambda step: step.order)
        self.llm_client = llm_client

    async def execute(
        self,
        state: ValidationState,
        document_stream: BinaryIO,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ValidationState:
        """Run every applicable step and return the mutated state.

        Args:
            state: Fresh validation state for this run
            document_stream: Seekable document stream, rewound after each step
            cancel_event: Optional signal; when set the in-flight call is
                cancelled and the run ends with outcome Cancelled
        """
        LOGGER.info(
            f"Starting validation pipeline: {state.id}",
            extra={"steps": [step.name for step in self.steps]},
        )
        state.add_processing_step(INITIALIZE_STEP, "Initializing validation pipeline", ProcessingStepStatus.SUCCESS)
        state.conversation = self.llm_client.create_conversation()

        termination = PipelineTermination.COMPLETED_NORMALLY

        for step in self.steps:
            if cancel_event is not None and cancel_event.is_set():
                self._mark_cancelled(state, step)
                termination = PipelineTermination.CANCELLED
                break

            if not step.should_execute(state):
                LOGGER.info(f"Skipping step {step.name}: {state.id}")
                state.add_processing_step(step.name, "Step skipped", ProcessingStepStatus.SKIPPED)
                state.record_step(step.name, StepExecutionStatus.SKIPPED)
                continue

            LOGGER.info(f"Executing step {step.name}: {state.id}")
            try:
                prompt = await step.prepare_prompt(state, document_stream)
                response = await self._run_call(step, prompt, state, cancel_event)
                await step.process_response(state, response)
                document_stream.seek(0)
            except StepCancelledError:
                self._mark_cancelled(state, step)
                termination = PipelineTermination.CANCELLED
                break
            except Exception as e:
                self._mark_failed(state, PipelineStepError(step.name, e))
                termination = PipelineTermination.HALTED_ON_ERROR
                break

            state.record_step(step.name, StepExecutionStatus.SUCCEEDED)

            if state.overall_outcome == ValidationOutcome.INVALID:
                LOGGER.info(f"Pipeline halted after {step.name}: document disqualified")
                termination = PipelineTermination.HALTED_ON_DISQUALIFICATION
                break
            if state.overall_outcome == ValidationOutcome.ERROR:
                LOGGER.info(f"Pipeline halted after {step.name}: step reported an error")
                termination = PipelineTermination.HALTED_ON_ERROR
                break

        state.termination = termination
        final_status = ProcessingStepStatus.SUCCESS
        if termination in (PipelineTermination.HALTED_ON_ERROR, PipelineTermination.CANCELLED):
            final_status = ProcessingStepStatus.WARNING

        state.add_processing_step(
            COMPLETE_STEP,
            f"Validation pipeline completed with outcome: {state.overall_outcome.value}",
            final_status,
        )
        LOGGER.info(
            f"Validation pipeline finished: {state.id}",
            extra={"outcome": state.overall_outcome.value, "termination": termination.value},
        )
        return state

    async def _run_call(
        self,
        step: BasePipelineStep,
        prompt: StepPrompt,
        state: ValidationState,
        cancel_event: Optional[asyncio.Event],
    ) -> Any:
        if cancel_event is None:
            return await self._send(step, prompt, state)

        call = asyncio.ensure_future(self._send(step, prompt, state))
        waiter = asyncio.ensure_future(cancel_event.wait())
        try:
            done, _ = await asyncio.wait({call, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            call.cancel()
            raise
        finally:
            if not waiter.done():
                waiter.cancel()

        if call in done:
            return call.result()

        call.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await call
        raise StepCancelledError(step.name)

    async def _send(self, step: BasePipelineStep, prompt: StepPrompt, state: ValidationState) -> Any:
        if prompt.images:
            return await self.llm_client.send_multimodal_structured_prompt(
                step.response_type,
                prompt.prompt,
                prompt.images,
                conversation=state.conversation,
                step_label=step.name,
            )
        return await self.llm_client.send_structured_prompt(
            step.response_type,
            prompt.prompt,
            conversation=state.conversation,
            step_label=step.name,
        )

    @staticmethod
    def _mark_failed(state: ValidationState, error: PipelineStepError) -> None:
        cause = error.original_error
        LOGGER.error(f"Error executing step {error.step_name}: {cause}", exc_info=cause)
        state.add_processing_step(error.step_name, f"Error executing step: {cause}", ProcessingStepStatus.ERROR)
        state.add_issue(f"{error.step_name}Error", str(cause), IssueSeverity.ERROR)
        state.set_outcome(ValidationOutcome.ERROR, f"Validation failed during {error.step_name}: {cause}")
        state.record_step(error.step_name, StepExecutionStatus.FAILED, str(cause))

    @staticmethod
    def _mark_cancelled(state: ValidationState, step: BasePipelineStep) -> None:
        LOGGER.warning(f"Validation cancelled at step {step.name}: {state.id}")
        state.add_processing_step(step.name, "Step cancelled", ProcessingStepStatus.WARNING)
        state.add_issue(f"{step.name}Cancelled", "Validation was cancelled", IssueSeverity.WARNING)
        state.set_outcome(ValidationOutcome.CANCELLED, f"Validation was cancelled during {step.name}")
        state.record_step(step.name, StepExecutionStatus.CANCELLED)
