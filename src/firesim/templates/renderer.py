"""Markdown rendering for generation logs.

Generation logs are written next to the stored images so that trainers can
see exactly which prompts (and, where the model exposes it, which reasoning)
produced a scenario. Rendering is deterministic: the same log always
produces the same Markdown.
"""

import logging
from datetime import UTC, datetime

from jinja2 import Environment, PackageLoader, TemplateError, select_autoescape

from firesim.models.scenario import GenerationLog

logger = logging.getLogger(__name__)

GENERATION_LOG_TEMPLATE = "generation_log.md.j2"


def format_datetime(dt: datetime | str | None) -> str:
    """Format a datetime or ISO string for display.

    Args:
        dt: Datetime object or ISO string

    Returns:
        Formatted date string
    """
    if dt is None:
        return "N/A"

    if isinstance(dt, str):
        try:
            dt = datetime.fromisoformat(dt)
        except ValueError:
            return dt

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)

    return dt.astimezone(UTC).strftime("%Y-%m-%d %H:%M:%S UTC")


def format_duration(milliseconds: int | None) -> str:
    """Format a duration in milliseconds as seconds ("12.3s")."""
    if not milliseconds:
        return "unknown"
    return f"{milliseconds / 1000:.1f}s"


class LogRenderer:
    """Render generation logs to Markdown.

    Usage:
        renderer = LogRenderer()
        markdown = renderer.render_generation_log(scenario_id, log)
    """

    def __init__(self) -> None:
        self._env = Environment(
            loader=PackageLoader("firesim", "templates"),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self._env.filters["format_datetime"] = format_datetime
        self._env.filters["format_duration"] = format_duration

    def render_generation_log(
        self,
        scenario_id: str,
        log: GenerationLog,
        template_name: str = GENERATION_LOG_TEMPLATE,
    ) -> str:
        """Render a generation log.

        Args:
            scenario_id: Scenario the log belongs to
            log: Generation log
            template_name: Template file to use

        Returns:
            Rendered Markdown

        Raises:
            ValueError: If the template cannot be loaded or rendered
        """
        try:
            template = self._env.get_template(template_name)
        except TemplateError as e:
            raise ValueError(f"Template not found: {template_name}") from e

        responses = [(viewpoint, text) for viewpoint, text in log.model_responses if text]

        try:
            rendered = template.render(scenario_id=scenario_id, log=log, responses=responses)
        except TemplateError as e:
            raise ValueError(f"Template rendering failed: {e}") from e

        logger.debug("Rendered generation log for %s (%d characters)", scenario_id, len(rendered))
        return rendered
