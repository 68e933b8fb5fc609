"""Scenario generation pipeline.

Coordinates enrichment, prompt generation, image generation and storage for
one scenario. The sequence:

1. Multi-agent enrichment (context parser, then locality agent)
2. Prompt generation for every requested viewpoint
3. Anchor image generation
4. Remaining viewpoints, in batches, with the anchor as reference image
5. Consistency validation of the set
6. Post-processing: cost record, scenario metadata, generation log

Progress is kept in memory and persisted to the scenario store after every
change so that ``status`` and ``results`` work from another process.
"""

import asyncio
import logging
import random
import time
import uuid
from dataclasses import dataclass, replace

from firesim.agents import LocalityEnrichment, MultiAgentOrchestrator, create_orchestrator
from firesim.config import FireSimConfig
from firesim.costs import CostBreakdown, CostEstimator, UsageTracker
from firesim.images import (
    ImageGenerationError,
    ImageGeneratorService,
    ImageGenOptions,
    ImageGenResult,
)
from firesim.models.scenario import (
    GeneratedImage,
    GenerationLog,
    GenerationProgress,
    GenerationRequest,
    GenerationResult,
    GenerationStatus,
    ImageMetadata,
    ScenarioMetadata,
    ViewPoint,
)
from firesim.prompts import (
    DEFAULT_PROMPT_TEMPLATE,
    PromptSet,
    PromptTemplate,
    generate_prompts,
    load_prompt_template,
)
from firesim.storage import ScenarioNotFoundError, ScenarioStore, StorageError
from firesim.validation import ConsistencyValidationResult, ConsistencyValidator

logger = logging.getLogger(__name__)

MAX_SEED_VALUE = 1_000_000
MAX_VIEWS = 10
REFERENCE_STRENGTH = 0.5

# Minimum seconds between progress writes for streamed model thinking
THINKING_PERSIST_INTERVAL = 2.0


@dataclass
class PipelineOptions:
    """Options for controlling a generation run.

    Attributes:
        skip_enrichment: Skip locality enrichment (the request is still validated)
        skip_validation: Skip consistency validation of the image set
        max_views: Maximum viewpoints to generate (default: configuration)
    """

    skip_enrichment: bool = False
    skip_validation: bool = False
    max_views: int | None = None


def select_anchor_viewpoint(viewpoints: list[ViewPoint]) -> ViewPoint:
    """Pick the view generated first and used as reference for the rest.

    Ground-level views are preferred, then ``helicopter_above``, then
    ``aerial``, then whatever was requested first.
    """
    if not viewpoints:
        raise ValueError("No viewpoints to choose an anchor from")
    for viewpoint in viewpoints:
        if viewpoint.view_type == "ground":
            return viewpoint
    for preferred in (ViewPoint.HELICOPTER_ABOVE, ViewPoint.AERIAL):
        if preferred in viewpoints:
            return preferred
    return viewpoints[0]


def _batches(items: list[ViewPoint], size: int) -> list[list[ViewPoint]]:
    size = max(1, size)
    return [items[i : i + size] for i in range(0, len(items), size)]


class GenerationPipeline:
    """Generate a multi-perspective image set for a scenario."""

    def __init__(
        self,
        config: FireSimConfig | None = None,
        image_generator: ImageGeneratorService | None = None,
        store: ScenarioStore | None = None,
        orchestrator: MultiAgentOrchestrator | None = None,
        validator: ConsistencyValidator | None = None,
        estimator: CostEstimator | None = None,
        usage_tracker: UsageTracker | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            config: firesim configuration (uses defaults if None)
            image_generator: Image generator (default: built from config.image_model)
            store: Scenario store (default: config.storage_path)
            orchestrator: Enrichment orchestrator (default: built from config)
            validator: Consistency validator
            estimator: Cost estimator (default: config.pricing)
            usage_tracker: Usage tracker receiving each scenario's cost
        """
        self.config = config or FireSimConfig()
        self.image_generator = image_generator or ImageGeneratorService.from_config(
            self.config.image_model
        )
        self.store = store or ScenarioStore(self.config.storage_path)
        self.orchestrator = orchestrator or create_orchestrator(self.config)
        self.validator = validator or ConsistencyValidator()
        self.estimator = estimator or CostEstimator(self.config.pricing)
        self.usage_tracker = usage_tracker or UsageTracker(
            storage_price_per_gb=self.config.pricing.storage_per_gb_month
        )
        self.prompt_template = self._load_prompt_template()
        self._progress: dict[str, GenerationProgress] = {}

    def _load_prompt_template(self) -> PromptTemplate:
        template_path = self.config.prompt_template_path
        if template_path is None:
            return DEFAULT_PROMPT_TEMPLATE
        return load_prompt_template(template_path)

    def _max_views(self, options: PipelineOptions) -> int:
        limit = options.max_views or self.config.generation.max_views
        return min(limit, MAX_VIEWS)

    def _persist(self, progress: GenerationProgress) -> None:
        progress.touch()
        try:
            self.store.save_progress(progress)
        except StorageError as e:
            logger.warning("Failed to persist progress for %s: %s", progress.scenario_id, e)

    # =========================================================================
    # Entry points
    # =========================================================================

    def start_generation(
        self,
        request: GenerationRequest,
        options: PipelineOptions | None = None,
    ) -> str:
        """Register a new generation and return its scenario id.

        The seed is fixed here (random below 1,000,000 unless the request
        carries one) so it is visible in status output before generation runs.
        """
        options = options or PipelineOptions()
        scenario_id = str(uuid.uuid4())
        seed = request.seed if request.seed is not None else random.randrange(MAX_SEED_VALUE)

        progress = GenerationProgress(
            scenario_id=scenario_id,
            status=GenerationStatus.PENDING,
            total_images=min(len(request.requested_views), self._max_views(options)),
            seed=seed,
        )
        self._progress[scenario_id] = progress
        self._persist(progress)

        logger.info(
            "Generation request received: %s (%d views, seed %d)",
            scenario_id,
            progress.total_images,
            seed,
        )
        return scenario_id

    async def generate(
        self,
        request: GenerationRequest,
        options: PipelineOptions | None = None,
    ) -> GenerationResult:
        """Start and run a generation."""
        scenario_id = self.start_generation(request, options)
        return await self.run(scenario_id, request, options)

    async def run(
        self,
        scenario_id: str,
        request: GenerationRequest,
        options: PipelineOptions | None = None,
    ) -> GenerationResult:
        """Run a started generation to completion.

        Failures of the whole pipeline (invalid request, unsafe prompt) are
        recorded on the progress record rather than raised.

        Raises:
            ScenarioNotFoundError: If the scenario was not started
        """
        options = options or PipelineOptions()
        progress = self._progress.get(scenario_id)
        if progress is None:
            raise ScenarioNotFoundError(scenario_id)

        if request.seed is None:
            request = replace(request, seed=progress.seed)

        progress.status = GenerationStatus.IN_PROGRESS
        self._persist(progress)
        start = time.monotonic()

        try:
            await self._execute(progress, request, options, start)
        except Exception as e:
            logger.error("Generation pipeline failed for %s: %s", scenario_id, e)
            progress.status = GenerationStatus.FAILED
            progress.error = str(e)
            self._persist(progress)

        return progress.to_result()

    def get_status(self, scenario_id: str) -> GenerationProgress:
        """Return the progress of a generation, from memory or the store.

        Raises:
            ScenarioNotFoundError: If the scenario is unknown
        """
        cached = self._progress.get(scenario_id)
        if cached is not None:
            return cached

        progress = self.store.load_progress(scenario_id)
        self._progress[scenario_id] = progress
        logger.debug("Loaded progress for %s from the store", scenario_id)
        return progress

    def get_results(self, scenario_id: str) -> GenerationResult:
        """Return the result view of a generation.

        Raises:
            ScenarioNotFoundError: If the scenario is unknown
        """
        return self.get_status(scenario_id).to_result()

    # =========================================================================
    # Stages
    # =========================================================================

    async def _execute(
        self,
        progress: GenerationProgress,
        request: GenerationRequest,
        options: PipelineOptions,
        start: float,
    ) -> None:
        scenario_id = progress.scenario_id

        # Stage 1: enrichment
        orchestrator = MultiAgentOrchestrator() if options.skip_enrichment else self.orchestrator
        enrichment_result = await orchestrator.process(request)
        request = enrichment_result.request

        # Stage 2: prompts
        prompt_set = generate_prompts(request, self.prompt_template)
        logger.info("Generated %d prompts for %s", len(prompt_set.prompts), scenario_id)

        viewpoints = request.requested_views[: self._max_views(options)]
        anchor_viewpoint = select_anchor_viewpoint(viewpoints)
        model_responses: list[tuple[str, str]] = []

        # Stage 3: anchor image
        anchor_data = await self._generate_anchor(
            progress, request, prompt_set, anchor_viewpoint, model_responses
        )

        # Stage 4: remaining views
        remaining = [view for view in viewpoints if view != anchor_viewpoint]
        max_concurrent = self.image_generator.max_concurrent
        logger.info(
            "Generating %d derived views (max %d concurrent, anchor reference: %s)",
            len(remaining),
            max_concurrent,
            anchor_data is not None,
        )
        for batch in _batches(remaining, max_concurrent):
            await self._generate_batch(
                progress, request, prompt_set, batch, anchor_data, model_responses
            )

        # Stage 5: consistency
        validation: ConsistencyValidationResult | None = None
        if len(progress.images) > 1 and not options.skip_validation:
            validation = self.validator.validate_image_set(
                progress.images, request.inputs, progress.anchor_image
            )
            logger.info(
                "Consistency score %d/100 (%s)",
                validation.score,
                "passed" if validation.passed else "failed",
            )
            for warning in validation.warnings:
                logger.warning("Consistency warning: %s", warning)
            if not validation.passed and validation.warnings:
                message = f"Consistency warnings: {'; '.join(validation.warnings)}"
                progress.error = f"{progress.error}. {message}" if progress.error else message

        if progress.completed_images == 0:
            progress.status = GenerationStatus.FAILED
            progress.error = progress.error or "No images were generated"
        else:
            progress.status = GenerationStatus.COMPLETED
            if progress.failed_images > 0:
                progress.error = (
                    f"Partial success: {progress.completed_images} succeeded, "
                    f"{progress.failed_images} failed"
                )
        self._persist(progress)

        logger.info(
            "Generation %s %s: %d completed, %d failed",
            scenario_id,
            progress.status.value,
            progress.completed_images,
            progress.failed_images,
        )

        # Stage 6: post-processing
        self._post_process(
            progress,
            request,
            prompt_set,
            enrichment_result.locality_enrichment,
            validation,
            model_responses,
            elapsed_ms=int((time.monotonic() - start) * 1000),
        )

    async def _generate_anchor(
        self,
        progress: GenerationProgress,
        request: GenerationRequest,
        prompt_set: PromptSet,
        viewpoint: ViewPoint,
        model_responses: list[tuple[str, str]],
    ) -> bytes | None:
        prompt = prompt_set.get(viewpoint)
        if prompt is None:
            return None

        last_persisted: float | None = None

        def on_thinking_update(text: str) -> None:
            nonlocal last_persisted
            progress.thinking_text = text
            now = time.monotonic()
            if last_persisted is None or now - last_persisted >= THINKING_PERSIST_INTERVAL:
                last_persisted = now
                self._persist(progress)

        logger.info("Generating anchor image: %s", viewpoint.value)
        try:
            result = await self.image_generator.generate_image(
                prompt.prompt_text,
                ImageGenOptions(seed=request.seed, on_thinking_update=on_thinking_update),
            )
            image = self._store_image(
                progress.scenario_id,
                viewpoint,
                prompt.prompt_text,
                result,
                request.seed,
                is_anchor=True,
            )
        except (ImageGenerationError, StorageError) as e:
            thinking = getattr(e, "thinking_text", None)
            if thinking:
                progress.thinking_text = thinking
            logger.error("Anchor image generation failed (%s): %s", viewpoint.value, e)
            progress.failed_images += 1
            progress.error = f"Anchor image generation failed: {e}"
            self._persist(progress)
            return None

        if result.model_text_response:
            model_responses.append((viewpoint.value, result.model_text_response))
        if result.thinking_text:
            progress.thinking_text = result.thinking_text

        progress.anchor_image = image
        progress.images.append(image)
        progress.completed_images += 1
        self._persist(progress)
        return result.image_data

    async def _generate_batch(
        self,
        progress: GenerationProgress,
        request: GenerationRequest,
        prompt_set: PromptSet,
        viewpoints: list[ViewPoint],
        anchor_data: bytes | None,
        model_responses: list[tuple[str, str]],
    ) -> None:
        options = ImageGenOptions(
            seed=request.seed,
            reference_image=anchor_data,
            reference_strength=REFERENCE_STRENGTH if anchor_data else None,
        )
        prompts = {view: prompt_set.get(view) for view in viewpoints}
        results = await asyncio.gather(
            *(
                self.image_generator.generate_image(prompts[view].prompt_text, options)
                for view in viewpoints
                if prompts[view] is not None
            ),
            return_exceptions=True,
        )
        generated = [view for view in viewpoints if prompts[view] is not None]

        for viewpoint, result in zip(generated, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.error("Image generation failed (%s): %s", viewpoint.value, result)
                progress.failed_images += 1
                self._persist(progress)
                continue

            prompt_text = prompts[viewpoint].prompt_text
            try:
                image = self._store_image(
                    progress.scenario_id,
                    viewpoint,
                    prompt_text,
                    result,
                    request.seed,
                    used_reference=anchor_data is not None,
                )
            except StorageError as e:
                logger.error("Failed to store image (%s): %s", viewpoint.value, e)
                progress.failed_images += 1
                self._persist(progress)
                continue

            if result.model_text_response:
                model_responses.append((viewpoint.value, result.model_text_response))
            progress.images.append(image)
            progress.completed_images += 1
            self._persist(progress)
            logger.info(
                "Image generated: %s (%d/%d)",
                viewpoint.value,
                progress.completed_images,
                progress.total_images,
            )

    def _store_image(
        self,
        scenario_id: str,
        viewpoint: ViewPoint,
        prompt_text: str,
        result: ImageGenResult,
        seed: int | None,
        is_anchor: bool = False,
        used_reference: bool = False,
    ) -> GeneratedImage:
        url = self.store.upload_image(scenario_id, viewpoint.value, result.image_data)
        return GeneratedImage(
            view_point=viewpoint,
            url=url,
            metadata=ImageMetadata(
                width=result.metadata.width,
                height=result.metadata.height,
                prompt=prompt_text,
                model=result.metadata.model,
                seed=seed,
                is_anchor=is_anchor,
                used_reference_image=used_reference,
            ),
        )

    def _post_process(
        self,
        progress: GenerationProgress,
        request: GenerationRequest,
        prompt_set: PromptSet,
        locality: LocalityEnrichment | None,
        validation: ConsistencyValidationResult | None,
        model_responses: list[tuple[str, str]],
        elapsed_ms: int,
    ) -> None:
        """Record cost, metadata and the generation log. Failures are logged only."""
        scenario_id = progress.scenario_id

        cost: CostBreakdown | None = None
        try:
            cost = self.estimator.estimate_scenario_cost(image_count=progress.completed_images)
            self.usage_tracker.record_scenario(scenario_id, cost)
            logger.info("Estimated cost for %s: $%.4f", scenario_id, cost.total_cost)
        except ValueError as e:
            logger.warning("Cost tracking failed (non-fatal): %s", e)

        try:
            metadata = ScenarioMetadata(
                id=scenario_id,
                perimeter=request.perimeter,
                inputs=request.inputs,
                geo_context=request.geo_context,
                requested_views=list(request.requested_views),
                result=progress.to_result(),
                prompt_version=prompt_set.template_version,
                locality=locality.to_dict() if locality else None,
                consistency=validation.to_dict() if validation else None,
                cost=cost.to_dict() if cost else None,
            )
            self.store.upload_metadata(scenario_id, metadata)
        except (StorageError, ValueError) as e:
            logger.warning("Failed to save scenario metadata (non-fatal): %s", e)

        try:
            log = GenerationLog(
                prompts=[(p.viewpoint.value, p.prompt_text) for p in prompt_set.prompts],
                seed=request.seed,
                model=(
                    progress.images[0].metadata.model
                    if progress.images
                    else self.image_generator.model_id
                ),
                generation_time_ms=elapsed_ms,
                thinking_text=progress.thinking_text,
                model_responses=model_responses,
            )
            self.store.upload_generation_log(scenario_id, log)
        except (StorageError, ValueError) as e:
            logger.warning("Failed to save generation log (non-fatal): %s", e)
