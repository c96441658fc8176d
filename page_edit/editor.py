"""
Page Edit Editor - Async orchestrator for one iterative page edit.

HtmlPageEditor runs the full pipeline against an injected generation
service:

    classify -> locate -> compose -> generate -> merge -> validate -> record

Every component it calls is a pure function; the only suspension point is
``ai_service.generate_content``. Failures never raise: they come back as an
EditOutcome carrying the untouched document and the reason.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

from config import PageEditSettings, config
from logging_utils import Phase, PhaseLogger, create_phase_logger, setup_logging

from .anchors import DEFAULT_ANCHOR, find_insertion_point
from .classifier import EditRequestClassifier
from .locators import locate_section
from .merge import insert_section, merge_at, preserve_critical_attributes
from .models import (
    ComposedPrompt,
    EditClassification,
    EditFailure,
    EditOutcome,
    ImagePlaceholder,
    IntegrityVerdict,
    MergeMethod,
    PromptShape,
    TargetSection,
    ValidationMode,
)
from .prompts import compose_prompt, find_image_placeholders
from .text_utils import (
    clean_generated_html,
    estimate_cost,
    estimate_tokens,
    sanitize_instruction,
)
from .validation import is_complete_document, validate
from .versioning import create_version_metadata

logger = logging.getLogger(__name__)


@dataclass
class _EditRun:
    """Mutable bookkeeping for a single apply_edit call."""

    document: str
    instruction: str
    model: str
    log: PhaseLogger
    classification: EditClassification = field(default_factory=EditClassification.fallback)
    prompt_shape: Optional[PromptShape] = None
    input_tokens: int = 0
    output_tokens: int = 0
    generation_error: str = ""
    started: float = field(default_factory=time.perf_counter)

    @property
    def elapsed_ms(self) -> int:
        return int((time.perf_counter() - self.started) * 1000)


class HtmlPageEditor:
    """
    Applies natural-language edits to a generated landing page.

    Example:
        editor = HtmlPageEditor(ai_service=get_ai_service())
        outcome = await editor.apply_edit(html, "make the header background blue")
        if outcome.success:
            html = outcome.document
            version_store.save(outcome.version)
        else:
            show_error(outcome.errors)
    """

    def __init__(
        self,
        ai_service: Any = None,
        settings: Optional[PageEditSettings] = None,
        phase_logger: Optional[PhaseLogger] = None,
    ):
        """
        Initialize the editor.

        Args:
            ai_service: Object exposing ``async generate_content(prompt=, model=,
                        temperature=, max_tokens=) -> str``
            settings: Pipeline settings (defaults to ``config.PAGE_EDIT``)
            phase_logger: Console phase logger; one is created per edit when omitted
        """
        self.ai_service = ai_service
        self.settings = settings or config.PAGE_EDIT
        self.phase_logger = phase_logger
        setup_logging(config.LOG_LEVEL)
        self.classifier = EditRequestClassifier(
            max_instruction_length=self.settings.max_instruction_length
        )

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    async def apply_edit(
        self, document: str, instruction: str, model: Optional[str] = None
    ) -> EditOutcome:
        """
        Apply one edit instruction to a page.

        Args:
            document: Current page HTML
            instruction: Free-text edit request from the user
            model: Generation model (defaults to the configured one)

        Returns:
            EditOutcome; on failure ``document`` is the input unchanged

        Raises:
            ValueError: If no generation service was configured or the
                        instruction is not a string
        """
        if self.ai_service is None:
            raise ValueError(
                "Generation service required for page edits. "
                "Initialize HtmlPageEditor with ai_service parameter."
            )

        text = sanitize_instruction(
            instruction, max_length=self.settings.max_instruction_length
        )
        run = _EditRun(
            document=document,
            instruction=text,
            model=model or self.settings.model,
            log=self.phase_logger or create_phase_logger(
                session_id=uuid.uuid4().hex[:8],
                verbose=config.VERBOSE,
                extra_verbose=config.EXTRA_VERBOSE,
            ),
        )

        with run.log.phase(Phase.CLASSIFY):
            run.classification = self.classifier.classify(text, document)
            run.log.info(
                f"target={run.classification.target_section.value} "
                f"type={run.classification.edit_type.value} "
                f"complexity={run.classification.complexity.value} "
                f"multi={run.classification.is_multi_target} "
                f"insertion={run.classification.is_insertion}"
            )

        if self._is_image_redirect(run.classification):
            return self._failure(
                run,
                EditFailure.IMAGE_EDIT_REDIRECT,
                ["Image changes use the image picker; no generation was requested"],
                requires_manual_image_flow=True,
            )

        if run.classification.is_insertion:
            outcome = await self._apply_insertion(run)
        else:
            outcome = await self._apply_replacement(run)

        run.log.log_timing_summary()
        return outcome

    # =========================================================================
    # PIPELINE BRANCHES
    # =========================================================================

    @staticmethod
    def _is_image_redirect(classification: EditClassification) -> bool:
        if classification.is_image_only:
            return True
        return (
            classification.target_section == TargetSection.IMAGE
            and not classification.is_insertion
        )

    async def _apply_insertion(self, run: _EditRun) -> EditOutcome:
        anchor = run.classification.insertion_anchor or DEFAULT_ANCHOR

        with run.log.phase(Phase.LOCATE, sub_label=f"{anchor.position.value} {anchor.anchor}"):
            split = find_insertion_point(run.document, anchor.anchor, anchor.position)
        if split is None:
            return self._failure(
                run,
                EditFailure.ANCHOR_NOT_FOUND,
                [f"Could not find the '{anchor.anchor}' section to insert {anchor.position.value}"],
            )

        with run.log.phase(Phase.COMPOSE):
            composed = compose_prompt(
                run.document,
                run.instruction,
                run.classification,
                located=None,
                style_context_chars=self.settings.style_context_chars,
                form_marker=self.settings.form_marker,
            )
            run.prompt_shape = composed.shape

        responses = await self._generate_all(run, composed.prompts)
        if responses is None:
            return self._generation_failure(run)

        new_section = clean_generated_html(responses[0])
        if not new_section:
            return self._failure(run, EditFailure.EMPTY_RESPONSE, ["Generation returned no markup"])

        with run.log.phase(Phase.MERGE):
            candidate = insert_section(split, new_section)

        with run.log.phase(Phase.VALIDATE):
            verdict = self._validate(run.document, candidate, ValidationMode.SECTION)
        if not verdict.valid:
            return self._failure(run, EditFailure.INTEGRITY_REJECTED, verdict.issues)

        return self._success(
            run, candidate, verdict, [], placeholders=find_image_placeholders(new_section)
        )

    async def _apply_replacement(self, run: _EditRun) -> EditOutcome:
        with run.log.phase(Phase.LOCATE):
            located = locate_section(run.document, run.classification)

        with run.log.phase(Phase.COMPOSE):
            composed = compose_prompt(
                run.document,
                run.instruction,
                run.classification,
                located=located,
                style_context_chars=self.settings.style_context_chars,
                form_marker=self.settings.form_marker,
            )
            run.prompt_shape = composed.shape
            run.log.info(
                f"Prompt shape {composed.shape.value}, {len(composed.prompts)} prompt(s)"
            )

        responses = await self._generate_all(run, composed.prompts)
        if responses is None:
            return self._generation_failure(run)

        if composed.sections:
            return self._merge_sections(run, composed, responses)
        return self._replace_document(run, composed, responses[0])

    def _merge_sections(
        self, run: _EditRun, composed: ComposedPrompt, responses: Sequence[str]
    ) -> EditOutcome:
        """
        Merge section responses in document order, validating after each.

        Each section is spliced at its extraction offset shifted by the length
        change of the merges before it. The merged page is finally validated
        against the pre-edit page so per-section losses cannot add up.
        """
        pairs = sorted(zip(composed.sections, responses), key=lambda pair: pair[0].start)
        current = run.document
        offset_shift = 0
        methods: List[MergeMethod] = []
        warnings: List[str] = []
        verdict = IntegrityVerdict(valid=True)

        for position, (section, response) in enumerate(pairs, start=1):
            label = f"section {position}/{len(pairs)}"
            new_section = clean_generated_html(response)
            if not new_section:
                return self._failure(
                    run, EditFailure.EMPTY_RESPONSE, [f"Generation returned no markup for {label}"]
                )
            if self.settings.restore_form_markers:
                new_section = preserve_critical_attributes(
                    new_section, section.html, self.settings.form_marker
                )

            with run.log.phase(Phase.MERGE, sub_label=label):
                result = merge_at(
                    current, section.html, new_section, section.start + offset_shift
                )
            if not result.success:
                return self._failure(
                    run,
                    EditFailure.MERGE_FAILED,
                    [f"Could not locate the original {label} ({section.locator_strategy}) in the page"],
                )
            run.log.info(f"{label} merged via {result.method.value}")

            with run.log.phase(Phase.VALIDATE, sub_label=label):
                verdict = self._validate(current, result.html, ValidationMode.SECTION)
            if not verdict.valid:
                return self._failure(run, EditFailure.INTEGRITY_REJECTED, verdict.issues)

            methods.append(result.method)
            warnings.extend(verdict.warnings)
            offset_shift += len(result.html) - len(current)
            current = result.html

        if len(pairs) > 1:
            with run.log.phase(Phase.VALIDATE, sub_label="whole page"):
                verdict = self._validate(run.document, current, ValidationMode.SECTION)
            if not verdict.valid:
                return self._failure(run, EditFailure.INTEGRITY_REJECTED, verdict.issues)
            warnings.extend(verdict.warnings)

        return self._success(run, current, verdict, methods, extra_warnings=warnings)

    def _replace_document(
        self, run: _EditRun, composed: ComposedPrompt, response: str
    ) -> EditOutcome:
        candidate = clean_generated_html(response)
        if not candidate:
            return self._failure(run, EditFailure.EMPTY_RESPONSE, ["Generation returned no markup"])

        if composed.shape == PromptShape.LIGHTWEIGHT and not is_complete_document(candidate):
            return self._failure(
                run,
                EditFailure.MERGE_FAILED,
                ["Expected a complete page but the generator returned a fragment"],
            )

        if self.settings.restore_form_markers:
            candidate = preserve_critical_attributes(
                candidate, run.document, self.settings.form_marker
            )

        with run.log.phase(Phase.VALIDATE):
            verdict = self._validate(run.document, candidate, ValidationMode.FULL_DOCUMENT)
        if not verdict.valid:
            return self._failure(run, EditFailure.INTEGRITY_REJECTED, verdict.issues)

        return self._success(run, candidate, verdict, [])

    # =========================================================================
    # GENERATION
    # =========================================================================

    async def _call_ai(self, run: _EditRun, prompt: str) -> str:
        run.log.log_prompt(
            run.model,
            prompt,
            temperature=self.settings.temperature,
            max_tokens=self.settings.max_tokens,
        )
        response = await self.ai_service.generate_content(
            prompt=prompt,
            model=run.model,
            temperature=self.settings.temperature,
            max_tokens=self.settings.max_tokens,
        )

        # generate_content returns the content string directly
        if isinstance(response, str):
            text = response
        elif hasattr(response, "content"):
            text = response.content
        elif hasattr(response, "text"):
            text = response.text
        else:
            text = str(response)

        run.log.log_response(run.model, text)
        return text or ""

    async def _gather_responses(self, run: _EditRun, prompts: Sequence[str]) -> List[str]:
        """Run the calls concurrently; the first failure cancels the rest."""
        tasks = [asyncio.ensure_future(self._call_ai(run, prompt)) for prompt in prompts]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            pending = [task for task in tasks if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                logger.info(f"Cancelled {len(pending)} outstanding generation call(s)")
            raise

    async def _generate_all(
        self, run: _EditRun, prompts: Sequence[str]
    ) -> Optional[List[str]]:
        """
        Send every prompt and return the responses in prompt order.

        Returns None if any call failed; the error is logged. Cancellation
        propagates to the caller.
        """
        run.input_tokens += sum(estimate_tokens(p) for p in prompts)
        with run.log.phase(Phase.GENERATION, sub_label=f"{len(prompts)} prompt(s)"):
            try:
                if self.settings.parallel_sections and len(prompts) > 1:
                    responses = await self._gather_responses(run, prompts)
                else:
                    responses = [await self._call_ai(run, prompt) for prompt in prompts]
            except Exception as e:
                run.log.error(f"Generation failed: {e}")
                run.generation_error = str(e)
                return None

        run.output_tokens += sum(estimate_tokens(r) for r in responses)
        return list(responses)

    # =========================================================================
    # OUTCOMES
    # =========================================================================

    def _validate(self, original: str, candidate: str, mode: ValidationMode) -> IntegrityVerdict:
        if mode == ValidationMode.FULL_DOCUMENT:
            return validate(
                original, candidate, mode, form_marker=self.settings.form_marker
            )
        return validate(
            original,
            candidate,
            mode,
            max_image_drop=self.settings.max_image_drop,
            max_section_drop=self.settings.max_section_drop,
            min_size_ratio=self.settings.min_size_ratio,
        )

    def _estimated_cost(self, run: _EditRun) -> float:
        return estimate_cost(
            run.input_tokens,
            run.output_tokens,
            self.settings.input_cost_per_1m,
            self.settings.output_cost_per_1m,
        )

    def _generation_failure(self, run: _EditRun) -> EditOutcome:
        error = run.generation_error or "unknown error"
        return self._failure(run, EditFailure.GENERATION_FAILED, [f"AI error: {error}"])

    def _failure(
        self,
        run: _EditRun,
        failure: EditFailure,
        errors: List[str],
        requires_manual_image_flow: bool = False,
    ) -> EditOutcome:
        run.log.log_decision("REJECTED", reason=f"{failure.value}: {'; '.join(errors)}")
        return EditOutcome(
            success=False,
            document=run.document,
            failure=failure,
            errors=errors,
            classification=run.classification.to_dict(),
            prompt_shape=run.prompt_shape,
            requires_manual_image_flow=requires_manual_image_flow,
            estimated_input_tokens=run.input_tokens,
            estimated_output_tokens=run.output_tokens,
            estimated_cost=self._estimated_cost(run),
            execution_time_ms=run.elapsed_ms,
        )

    def _success(
        self,
        run: _EditRun,
        document: str,
        verdict: IntegrityVerdict,
        methods: List[MergeMethod],
        placeholders: Optional[List[ImagePlaceholder]] = None,
        extra_warnings: Optional[List[str]] = None,
    ) -> EditOutcome:
        with run.log.phase(Phase.RECORD):
            version = create_version_metadata(
                run.instruction,
                run.classification,
                max_description_length=self.settings.version_description_length,
            )

        warnings = list(extra_warnings) if extra_warnings is not None else list(verdict.warnings)
        run.log.log_decision("ACCEPTED", reason="; ".join(warnings) or None)

        return EditOutcome(
            success=True,
            document=document,
            warnings=warnings,
            classification=run.classification.to_dict(),
            prompt_shape=run.prompt_shape,
            merge_methods=methods,
            image_placeholders=[
                {"index": p.index, "description": p.description, "token": p.token}
                for p in (placeholders or [])
            ],
            version=version,
            estimated_input_tokens=run.input_tokens,
            estimated_output_tokens=run.output_tokens,
            estimated_cost=self._estimated_cost(run),
            execution_time_ms=run.elapsed_ms,
        )
