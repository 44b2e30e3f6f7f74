"""Optional AI enrichment of schedules and daily plans through the OpenAI API.

The engine never depends on this module succeeding. Every failure (no client,
network error, timeout, malformed JSON) is logged and turned into ``None`` so
callers fall back to the deterministic output.
"""
import json
import logging
from pathlib import Path
from typing import Optional

from prep_planner.advice import DEFAULT_ADJUSTMENTS, DEFAULT_RECOMMENDATIONS
from prep_planner.curriculum import Curriculum
from prep_planner.models import (
    DailyStudySuggestion, EnrichmentResult, ScheduleConfig, TopicAnalysis, URGENCY_LEVELS,
    UserProgress,
)

logger = logging.getLogger(__name__)

PROMPTS_DIR = Path(__file__).parent / "prompts"
DEFAULT_MODEL = "gpt-4o-mini"
TEMPERATURE = 0.3
MAX_TOKENS = 2000

DEFAULT_STRATEGY = {
    "totalWeeksNeeded": 30,
    "averageHoursPerWeek": 25,
    "riskMitigation": [
        "Maintain consistent daily study routine",
        "Prioritize urgent topics first",
        "Use weekends for intensive study sessions",
    ],
    "successFactors": [
        "Consistent daily practice",
        "Regular progress tracking",
        "Focus on understanding over memorization",
    ],
}


class EnrichmentUnavailable(Exception):
    """The AI service could not produce a usable response."""


def load_prompt(prompt_name: str, prompts_dir: Optional[str] = None) -> str:
    """Load a prompt from ``<prompts_dir>/<prompt_name>.txt``.

    Raises:
        FileNotFoundError: If the prompt file doesn't exist.
    """
    prompt_file = Path(prompts_dir or PROMPTS_DIR) / f"{prompt_name}.txt"
    if not prompt_file.exists():
        raise FileNotFoundError(f"Prompt file not found: {prompt_file}")
    return prompt_file.read_text(encoding="utf-8")


def build_enrichment_payload(curriculum: Curriculum, config: ScheduleConfig, progress: UserProgress,
                             analyses: list[TopicAnalysis]) -> dict:
    remaining = [a for a in analyses if a.completion_percentage < 100]
    return {
        "completedTopics": len(analyses) - len(remaining),
        "remainingTopics": [
            {
                "id": a.topic_id,
                "weekNumber": a.week_number,
                "estimatedHours": curriculum.get_topic(a.topic_id).estimated_hours,
                "subtopicCount": a.total_subtopics,
            }
            for a in remaining
        ],
        "constraints": len(config.constraints),
        "labDays": len(config.default_lab_days),
        "topicAnalysis": [a.to_dict() for a in analyses],
    }


def _string_list(value) -> list[str] | None:
    if not isinstance(value, list):
        return None
    items = [str(v) for v in value if isinstance(v, (str, int, float)) and str(v).strip()]
    return items or None


def repair_enrichment(raw: dict, remaining_ids: list[str], analyses: list[TopicAnalysis]) -> EnrichmentResult:
    """Turn a possibly partial AI response into a complete EnrichmentResult."""
    known = set(remaining_ids)
    order = []
    for tid in raw.get("topicOrder") or []:
        if isinstance(tid, str) and tid in known and tid not in order:
            order.append(tid)
    order += [tid for tid in remaining_ids if tid not in order]

    groups = {level: [] for level in URGENCY_LEVELS}
    raw_groups = raw.get("priorityGroups")
    if isinstance(raw_groups, dict):
        for level in URGENCY_LEVELS:
            for tid in raw_groups.get(level) or []:
                if isinstance(tid, str) and tid in known and tid not in groups[level]:
                    groups[level].append(tid)
    grouped = {tid for ids in groups.values() for tid in ids}
    for a in analyses:
        if a.topic_id in known and a.topic_id not in grouped:
            groups[a.urgency_level].append(a.topic_id)

    strategy = raw.get("completionStrategy")
    if not isinstance(strategy, dict):
        strategy = dict(DEFAULT_STRATEGY)

    return EnrichmentResult(
        topic_order=order,
        priority_groups=groups,
        recommendations=_string_list(raw.get("recommendations")) or list(DEFAULT_RECOMMENDATIONS),
        adjustments=_string_list(raw.get("adjustments")) or list(DEFAULT_ADJUSTMENTS),
        completion_strategy=strategy,
    )


class ScheduleEnricher:
    """Wraps an injected OpenAI client. A ``None`` client disables enrichment."""

    def __init__(self, client=None, model: str = DEFAULT_MODEL, timeout: float | None = None):
        self.client = client
        self.model = model
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def _complete(self, system_prompt: str, payload: dict, max_tokens: int = MAX_TOKENS) -> dict:
        """One JSON-mode chat completion. No retries."""
        if self.client is None:
            raise EnrichmentUnavailable("no OpenAI client configured")
        kwargs = {}
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout
        try:
            completion = self.client.chat.completions.create(
                model=self.model,
                response_format={"type": "json_object"},
                temperature=TEMPERATURE,
                max_tokens=max_tokens,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": json.dumps(payload)},
                ],
                **kwargs,
            )
            raw = completion.choices[0].message.content
        except Exception as e:
            raise EnrichmentUnavailable(f"request failed: {e}") from e
        if not raw:
            raise EnrichmentUnavailable("empty response")
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise EnrichmentUnavailable(f"invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise EnrichmentUnavailable("response is not a JSON object")
        return data

    def enrich_schedule(self, payload: dict, remaining_ids: list[str],
                        analyses: list[TopicAnalysis]) -> EnrichmentResult | None:
        if not self.enabled:
            return None
        try:
            raw = self._complete(load_prompt("schedule_system"), payload)
        except EnrichmentUnavailable as e:
            logger.warning("Schedule enrichment unavailable, using deterministic output: %s", e)
            return None
        result = repair_enrichment(raw, remaining_ids, analyses)
        logger.info("Schedule enrichment received: %d topics ordered, %d recommendations",
                    len(result.topic_order), len(result.recommendations))
        return result

    def enrich_daily_tips(self, plan: DailyStudySuggestion) -> DailyStudySuggestion:
        """Append AI tips to the plan in place. The plan is unchanged on failure."""
        if not self.enabled or not plan.suggestions:
            return plan
        payload = {
            "date": plan.date.isoformat(),
            "dayType": plan.day_type,
            "availableHours": plan.total_available_hours,
            "topics": [
                {"id": ts.topic_id, "title": ts.topic_title, "subtopics": [s.title for s in ts.subtopics]}
                for ts in plan.suggestions
            ],
        }
        try:
            raw = self._complete(load_prompt("daily_tips_system"), payload, max_tokens=500)
        except EnrichmentUnavailable as e:
            logger.warning("Daily tip enrichment unavailable: %s", e)
            return plan
        new_tips = [t for t in _string_list(raw.get("tips")) or [] if t not in plan.tips]
        plan.tips.extend(new_tips)
        return plan


def enricher_from_settings(settings) -> ScheduleEnricher:
    """Build an enricher from Settings; without an API key it is disabled."""
    if not settings.openai_api_key:
        return ScheduleEnricher(None)
    from openai import OpenAI

    client = OpenAI(api_key=settings.openai_api_key)
    return ScheduleEnricher(client, model=settings.openai_model, timeout=settings.enrichment_timeout)
