"""firesim CLI interface.

Commands:
- prompts: Compile the prompt set for a generation request
- generate: Generate a multi-perspective image set for a request
- status / results: Inspect a generation
- list / delete: Manage stored scenarios
- rating: Weather profile and fire behaviour for a fire danger rating
- fdi: McArthur forest fire danger index for weather inputs
- estimate / usage: Cost estimation and daily usage
- health: Service health as JSON
- check: Validate image model, grounding LLM and storage
- init: Initialize firesim configuration

Global options:
- --config: Path to configuration file
- --verbose: Enable verbose output with timestamps
- --quiet: Suppress info messages
- --ci: CI mode with JSON output
- --version: Show version and exit
"""

import json
from datetime import UTC, date, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Any

import typer

from firesim import __version__
from firesim.config import FireSimConfig, load_config
from firesim.utils.logging import configure_from_cli, get_logger

if TYPE_CHECKING:
    from firesim.models.scenario import GenerationRequest
    from firesim.storage import ScenarioStore

# Create Typer app
app = typer.Typer(
    name="firesim",
    help="Bushfire training image generator",
    add_completion=False,
    no_args_is_help=True,
)

# Global state
_config: FireSimConfig | None = None
_ci_mode = False
_logger = get_logger()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"firesim {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output with timestamps",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress info messages (warnings and errors only)",
        ),
    ] = False,
    ci: Annotated[
        bool,
        typer.Option(
            "--ci",
            help="Enable CI mode with JSON output",
        ),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """firesim - Bushfire Training Image Generator.

    Turn a fire perimeter, weather and fire parameters into photorealistic
    multi-perspective training images for fire service crews.
    """
    global _config, _ci_mode

    configure_from_cli(verbose=verbose, quiet=quiet, ci=ci)

    try:
        _config = load_config(config_path=config)
        if _config.config_path:
            _logger.debug(f"Loaded config from: {_config.config_path}")
    except FileNotFoundError as e:
        _logger.error(str(e))
        raise typer.Exit(1)
    except Exception as e:
        _logger.error(f"Failed to load config: {e}")
        raise typer.Exit(1)

    _ci_mode = ci or _config.ci.json_output


def _get_config() -> FireSimConfig:
    return _config if _config is not None else FireSimConfig()


def _use_json(json_output: bool) -> bool:
    return json_output or _ci_mode


def _echo_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2))


def _load_request(path: Path) -> "GenerationRequest":
    """Read a generation request JSON file, exiting with code 1 when invalid."""
    from firesim.models.scenario import GenerationRequest

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        _logger.error(f"Failed to read request {path}: {e}")
        raise typer.Exit(1)

    if not isinstance(data, dict):
        _logger.error(f"Request must be a JSON object: {path}")
        raise typer.Exit(1)

    try:
        return GenerationRequest.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        _logger.error(f"Invalid generation request: {e}")
        raise typer.Exit(1)


def _get_store() -> "ScenarioStore":
    from firesim.storage import ScenarioStore

    return ScenarioStore(_get_config().storage_path)


RequestArgument = Annotated[
    Path,
    typer.Argument(
        help="Path to a generation request JSON file",
        exists=True,
        dir_okay=False,
    ),
]
JsonOption = Annotated[
    bool,
    typer.Option(
        "--json",
        help="Output results as JSON",
    ),
]


# =============================================================================
# prompts command
# =============================================================================


@app.command()
def prompts(
    request_file: RequestArgument,
    json_output: JsonOption = False,
    template: Annotated[
        Path | None,
        typer.Option(
            "--template",
            "-t",
            help="YAML prompt template (overrides config)",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
) -> None:
    """Compile the prompt set for a generation request.

    Exit codes:
        0: Prompts generated
        1: Invalid request, template or blocked terms in the prompts
    """
    from firesim.agents import ContextParserAgent
    from firesim.prompts import (
        DEFAULT_PROMPT_TEMPLATE,
        PromptSafetyError,
        generate_prompts,
        load_prompt_template,
    )

    request = _load_request(request_file)
    template_path = template or _get_config().prompt_template_path

    try:
        prompt_template = (
            load_prompt_template(template_path) if template_path else DEFAULT_PROMPT_TEMPLATE
        )
        ContextParserAgent.validate_request(request)
        prompt_set = generate_prompts(request, prompt_template)
    except PromptSafetyError as e:
        _logger.error(str(e))
        raise typer.Exit(1)
    except (FileNotFoundError, ValueError) as e:
        _logger.error(f"Prompt generation failed: {e}")
        raise typer.Exit(1)

    if _use_json(json_output):
        _echo_json(prompt_set.to_dict())
        return

    typer.echo(f"\n📝 Prompt set {prompt_set.id} (template {prompt_set.template_version})\n")
    for prompt in prompt_set.prompts:
        typer.echo(f"📷 {prompt.viewpoint.value}")
        typer.echo(f"   {prompt.prompt_text}\n")


# =============================================================================
# generate command
# =============================================================================


@app.command()
def generate(
    request_file: RequestArgument,
    json_output: JsonOption = False,
    seed: Annotated[
        int | None,
        typer.Option(
            "--seed",
            help="Seed shared by all images (overrides the request)",
        ),
    ] = None,
    max_views: Annotated[
        int | None,
        typer.Option(
            "--max-views",
            help="Maximum viewpoints to generate (1-10)",
            min=1,
            max=10,
        ),
    ] = None,
    skip_enrichment: Annotated[
        bool,
        typer.Option(
            "--skip-enrichment",
            help="Skip locality enrichment",
        ),
    ] = False,
    skip_validation: Annotated[
        bool,
        typer.Option(
            "--skip-validation",
            help="Skip consistency validation of the image set",
        ),
    ] = False,
) -> None:
    """Generate a multi-perspective image set for a request.

    Generates an anchor view first, then the remaining views using the
    anchor as reference, and stores everything in the scenario store.

    Exit codes:
        0: All images generated
        1: Generation failed
        2: Generated with warnings (partial success or consistency warnings)
    """
    import asyncio
    from dataclasses import replace

    from firesim.models.scenario import GenerationStatus
    from firesim.pipeline import GenerationPipeline, PipelineOptions

    config = _get_config()
    request = _load_request(request_file)
    if seed is not None:
        request = replace(request, seed=seed)

    options = PipelineOptions(
        skip_enrichment=skip_enrichment,
        skip_validation=skip_validation,
        max_views=max_views,
    )

    try:
        pipeline = GenerationPipeline(config)
    except (FileNotFoundError, ValueError) as e:
        _logger.error(f"Failed to set up generation: {e}")
        raise typer.Exit(1)

    _logger.info(
        f"Generating {len(request.requested_views)} views with "
        f"{pipeline.image_generator.model_id}"
    )
    result = asyncio.run(pipeline.generate(request, options))

    if _use_json(json_output):
        _echo_json(result.to_dict())
    else:
        typer.echo(f"\n🔥 Scenario {result.id}: {result.status.value}")
        typer.echo(f"   Seed: {result.seed}")
        for image in result.images:
            anchor = " (anchor)" if image.metadata.is_anchor else ""
            typer.echo(f"   📷 {image.view_point.value}{anchor}: {image.url}")
        if result.error:
            typer.echo(f"\n⚠️  {result.error}")

    if result.status == GenerationStatus.FAILED:
        raise typer.Exit(1)
    if result.error:
        raise typer.Exit(1 if config.ci.fail_on_warning else 2)
    raise typer.Exit(0)


# =============================================================================
# status / results commands
# =============================================================================


@app.command()
def status(
    scenario_id: Annotated[str, typer.Argument(help="Scenario ID")],
    json_output: JsonOption = False,
) -> None:
    """Show the progress of a generation."""
    from firesim.storage import StorageError

    try:
        progress = _get_store().load_progress(scenario_id)
    except (StorageError, ValueError) as e:
        _logger.error(str(e))
        raise typer.Exit(1)

    if _use_json(json_output):
        data = progress.to_dict()
        data.pop("images", None)
        _echo_json(data)
        return

    typer.echo(f"\n🔥 Scenario {progress.scenario_id}: {progress.status.value}")
    typer.echo(
        f"   Images: {progress.completed_images}/{progress.total_images} completed, "
        f"{progress.failed_images} failed"
    )
    typer.echo(f"   Updated: {progress.updated_at}")
    if progress.error:
        typer.echo(f"   ⚠️  {progress.error}")


@app.command()
def results(
    scenario_id: Annotated[str, typer.Argument(help="Scenario ID")],
    json_output: JsonOption = False,
) -> None:
    """Show the result of a generation with its images."""
    from firesim.storage import StorageError

    try:
        result = _get_store().load_progress(scenario_id).to_result()
    except (StorageError, ValueError) as e:
        _logger.error(str(e))
        raise typer.Exit(1)

    if _use_json(json_output):
        _echo_json(result.to_dict())
        return

    typer.echo(f"\n🔥 Scenario {result.id}: {result.status.value}")
    if result.completed_at:
        typer.echo(f"   Completed: {result.completed_at}")
    for image in result.images:
        anchor = " (anchor)" if image.metadata.is_anchor else ""
        typer.echo(f"   📷 {image.view_point.value}{anchor}: {image.url}")
    if result.thinking_text:
        typer.echo(f"\n💭 {result.thinking_text}")


# =============================================================================
# list / delete commands
# =============================================================================


@app.command("list")
def list_scenarios(json_output: JsonOption = False) -> None:
    """List stored scenarios, newest first."""
    scenarios = _get_store().list_scenarios()

    if _use_json(json_output):
        _echo_json([scenario.to_dict() for scenario in scenarios])
        return

    if not scenarios:
        typer.echo("No stored scenarios")
        return

    typer.echo(f"\n📚 {len(scenarios)} stored scenario(s)\n")
    for scenario in scenarios:
        locality = scenario.geo_context.locality or "unknown locality"
        typer.echo(
            f"  {scenario.id}  {scenario.result.created_at}  "
            f"{scenario.inputs.fire_danger_rating.value:<12} "
            f"{len(scenario.result.images)} image(s)  {locality}"
        )


@app.command()
def delete(
    scenario_id: Annotated[str, typer.Argument(help="Scenario ID")],
    yes: Annotated[
        bool,
        typer.Option(
            "--yes",
            "-y",
            help="Delete without confirmation",
        ),
    ] = False,
) -> None:
    """Delete a stored scenario and its images."""
    from firesim.storage import StorageError

    if not yes and not typer.confirm(f"Delete scenario {scenario_id}?"):
        raise typer.Exit(1)

    try:
        _get_store().delete_scenario(scenario_id)
    except (StorageError, ValueError) as e:
        _logger.error(str(e))
        raise typer.Exit(1)

    typer.echo(f"🗑️  Deleted scenario {scenario_id}")


# =============================================================================
# rating / fdi commands
# =============================================================================


@app.command()
def rating(
    rating_name: Annotated[
        str,
        typer.Argument(
            metavar="RATING",
            help="Fire danger rating: noRating, moderate, high, extreme, catastrophic",
        ),
    ],
    vegetation: Annotated[
        str,
        typer.Option(
            "--vegetation",
            help="Vegetation type for fire behaviour",
        ),
    ] = "Dry Sclerophyll Forest",
    json_output: JsonOption = False,
) -> None:
    """Show the typical weather and fire behaviour for a fire danger rating."""
    from firesim.fire import (
        format_rating,
        get_fire_behaviour,
        get_rating_color,
        get_rating_description,
        get_weather_profile_for_rating,
    )
    from firesim.models.scenario import FireDangerRating, parse_enum

    try:
        danger_rating = parse_enum(FireDangerRating, rating_name, "fireDangerRating")
    except ValueError as e:
        _logger.error(str(e))
        raise typer.Exit(1)

    profile = get_weather_profile_for_rating(danger_rating)
    behaviour = get_fire_behaviour(danger_rating, vegetation)

    if _use_json(json_output):
        _echo_json(
            {
                "rating": danger_rating.value,
                "label": format_rating(danger_rating),
                "color": get_rating_color(danger_rating),
                "description": get_rating_description(danger_rating),
                "weather": profile.to_dict(),
                "behaviour": behaviour.to_dict(),
            }
        )
        return

    typer.echo(f"\n🔥 {format_rating(danger_rating)} ({get_rating_color(danger_rating)})")
    typer.echo(f"   {get_rating_description(danger_rating)}\n")
    typer.echo(
        f"   Weather: {profile.temperature:g}°C, {profile.humidity:g}% RH, "
        f"{profile.wind_speed:g} km/h wind"
    )
    typer.echo(f"   Behaviour ({vegetation}):")
    typer.echo(
        f"     Flame height: {behaviour.flame_height.min:g}-{behaviour.flame_height.max:g} m"
    )
    typer.echo(
        f"     Rate of spread: {behaviour.rate_of_spread.min:g}-"
        f"{behaviour.rate_of_spread.max:g} km/h"
    )
    typer.echo(f"     Spotting: {behaviour.spotting_distance}")
    typer.echo(f"     Intensity: {behaviour.intensity.value}")
    typer.echo(f"     {behaviour.descriptor}")


@app.command()
def fdi(
    temperature: Annotated[float, typer.Option("--temperature", "-t", help="Temperature (°C)")],
    humidity: Annotated[float, typer.Option("--humidity", "-h", help="Relative humidity (%)")],
    wind_speed: Annotated[float, typer.Option("--wind-speed", "-w", help="Wind speed (km/h)")],
    drought_factor: Annotated[
        float,
        typer.Option(
            "--drought-factor",
            "-d",
            help="Drought factor (0-10]",
        ),
    ] = 10.0,
    json_output: JsonOption = False,
) -> None:
    """Calculate the McArthur forest fire danger index for weather inputs."""
    from firesim.fire import (
        calculate_fire_danger_index,
        format_rating,
        get_fdi_rating,
        validate_weather_parameters,
    )

    try:
        index = calculate_fire_danger_index(temperature, humidity, wind_speed, drought_factor)
    except ValueError as e:
        _logger.error(str(e))
        raise typer.Exit(1)

    danger_rating = get_fdi_rating(index)
    warnings = validate_weather_parameters(temperature, humidity, wind_speed)

    if _use_json(json_output):
        _echo_json(
            {
                "fdi": round(index, 1),
                "rating": danger_rating.value,
                "label": format_rating(danger_rating),
                "warnings": warnings,
            }
        )
        return

    typer.echo(f"\n🌡️  FFDI {index:.1f}: {format_rating(danger_rating)}")
    for warning in warnings:
        typer.echo(f"   ⚠️  {warning}")


# =============================================================================
# estimate / usage commands
# =============================================================================


@app.command()
def estimate(
    images: Annotated[int, typer.Option("--images", "-n", help="Images per scenario", min=0)] = 5,
    videos: Annotated[int, typer.Option("--videos", help="Videos per scenario", min=0)] = 0,
    quality: Annotated[
        str,
        typer.Option("--quality", help="Image quality: standard or hd"),
    ] = "standard",
    provider: Annotated[
        str,
        typer.Option("--provider", help="Image provider: dalle3 or stable-image-core"),
    ] = "stable-image-core",
    storage_mb: Annotated[
        float,
        typer.Option("--storage-mb", help="Estimated storage per scenario (MB)", min=0),
    ] = 10.0,
    json_output: JsonOption = False,
) -> None:
    """Estimate the cost of generating a scenario."""
    from firesim.costs import CostEstimator

    estimator = CostEstimator(_get_config().pricing)
    try:
        breakdown = estimator.estimate_scenario_cost(
            image_count=images,
            video_count=videos,
            image_quality=quality,
            image_provider=provider,
            estimated_storage_mb=storage_mb,
        )
    except ValueError as e:
        _logger.error(str(e))
        raise typer.Exit(1)

    if _use_json(json_output):
        _echo_json(breakdown.to_dict())
        return

    typer.echo("\n💰 Estimated scenario cost\n")
    for line in CostEstimator.format_cost_breakdown(breakdown).splitlines():
        typer.echo(f"   {line}")


@app.command()
def usage(
    day: Annotated[
        str | None,
        typer.Option(
            "--date",
            help="Day to summarise (YYYY-MM-DD, default: today UTC)",
        ),
    ] = None,
    json_output: JsonOption = False,
) -> None:
    """Summarise the cost of the scenarios stored for a day."""
    from firesim.costs import CostBreakdown, CostEstimator, UsageTracker

    try:
        summary_day = date.fromisoformat(day) if day else datetime.now(UTC).date()
    except ValueError:
        _logger.error(f"Invalid date: {day}. Use YYYY-MM-DD")
        raise typer.Exit(1)

    tracker = UsageTracker(storage_price_per_gb=_get_config().pricing.storage_per_gb_month)
    for scenario in _get_store().list_scenarios():
        if not scenario.cost:
            continue
        try:
            created = datetime.fromisoformat(scenario.result.created_at).astimezone(UTC).date()
            tracker.record_scenario(
                scenario.id, CostBreakdown.from_dict(scenario.cost), recorded_on=created
            )
        except (KeyError, ValueError) as e:
            _logger.warning(f"Skipping cost record of {scenario.id}: {e}")

    summary = tracker.get_daily_summary(summary_day)

    if _use_json(json_output):
        _echo_json(summary.to_dict())
        return

    typer.echo(f"\n📊 Usage for {summary.date}\n")
    typer.echo(f"   Scenarios: {summary.total_scenarios}")
    typer.echo(f"   Images: {summary.total_images}")
    typer.echo(f"   Videos: {summary.total_videos}")
    for line in CostEstimator.format_cost_breakdown(summary.cost_breakdown).splitlines():
        typer.echo(f"   {line}")


# =============================================================================
# health command
# =============================================================================


@app.command()
def health() -> None:
    """Print service health as JSON."""
    _echo_json(
        {
            "status": "healthy",
            "timestamp": datetime.now(UTC).isoformat(),
            "version": __version__,
        }
    )


# =============================================================================
# check command
# =============================================================================


@app.command()
def check(
    json_output: JsonOption = False,
    verify: Annotated[
        bool,
        typer.Option(
            "--verify",
            help="Verify the grounding LLM with a real API call",
        ),
    ] = False,
) -> None:
    """Validate the image model, grounding LLM and scenario store.

    Exit codes:
        0: Everything available
        1: A required dependency is missing
        2: Only optional dependencies missing (warnings)
    """
    from firesim.utils.preflight import PreflightChecker

    result = PreflightChecker().check_all(_get_config(), verify_grounding=verify)

    if _use_json(json_output):
        _echo_json(result.to_dict())
    else:
        typer.echo("\n🔍 Preflight Check Results\n")

        for check_result in result.checks:
            status_icon = "✅" if check_result.available else "❌"
            version_str = f" ({check_result.version})" if check_result.version else ""
            required_str = " [required]" if check_result.required else " [optional]"

            typer.echo(f"  {status_icon} {check_result.name}{version_str}{required_str}")
            typer.echo(f"     └─ {check_result.message}")

        typer.echo()

        if result.errors:
            typer.echo("❌ Preflight check FAILED")
            for error in result.errors:
                typer.echo(f"   • {error}")
        elif result.warnings:
            typer.echo("⚠️  Preflight check passed with WARNINGS")
            for warning in result.warnings:
                typer.echo(f"   • {warning}")
        else:
            typer.echo("✅ All preflight checks passed")

    if result.errors:
        raise typer.Exit(1)
    if result.warnings:
        raise typer.Exit(2)
    raise typer.Exit(0)


# =============================================================================
# init command
# =============================================================================


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            help="Overwrite existing config",
        ),
    ] = False,
) -> None:
    """Initialize firesim configuration.

    Creates .firesim/config.yaml with commented defaults.
    """
    from firesim.config import create_default_config

    firesim_dir = Path(".firesim")
    firesim_dir.mkdir(exist_ok=True)
    config_file = firesim_dir / "config.yaml"

    if config_file.exists() and not force:
        _logger.error(f"Config already exists: {config_file}")
        _logger.info("Use --force to overwrite")
        raise typer.Exit(1)

    config_file.write_text(create_default_config(), encoding="utf-8")
    _logger.info(f"Created config: {config_file}")

    typer.echo("\n✅ firesim configuration initialized")
    typer.echo(f"   Config: {config_file}")
    raise typer.Exit(0)


if __name__ == "__main__":
    app()
