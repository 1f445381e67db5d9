"""
Pipeline driver for the recommendation refresh.

For every (location, interest) combination, in order (outer: locations,
inner: interests):
1. Research: ask the research template for prose notes
2. Structure: ask the structuring template for a fixed-size JSON array,
   with the notes embedded as context
3. Persist: write the batch to the JSON store and the relational store

Each of steps 1 and 2 falls back to the deterministic generators when the
stage's credential is missing outside production, or when the live call
fails and fallback is allowed (outside production, or in production with
fallback_in_production). Any other failure marks the combination FAILED and
the run moves on. After all combinations a trending pass runs and one
summary entry is logged.
"""

import logging
import uuid
from datetime import timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..core.config import Settings
from ..core.exceptions import CredentialMissingError, InvalidResponseError
from ..core.models import CombinationState, RecordSource, StructuredRecord, UnitOfWork
from ..core.types import LogCategory, TemplateType
from ..core.utils import truncate
from ..providers.gateway import ProviderGateway
from ..storage.record_store import RecordStore
from ..telemetry.kv_store import Clock, utc_now
from ..telemetry.sink import TelemetrySink
from ..templates.registry import TemplateRegistry, get_registry
from . import fallback
from .config import PipelineConfig
from .stats import PipelineRunStats
from .trending import rank_interests, record_evidence, season_for, trend_boosts


logger = logging.getLogger(__name__)


class PipelineDriver:
    """
    Batch orchestrator for the research → structure → persist cycle.

    Example:
        >>> settings = Settings.from_env()
        >>> telemetry = TelemetrySink.from_settings(settings)
        >>> driver = PipelineDriver(
        ...     PipelineConfig(), settings,
        ...     ProviderGateway(settings, telemetry), telemetry,
        ...     JsonFileRecordStore(settings.output_dir),
        ... )
        >>> stats = driver.run()
    """

    def __init__(
        self,
        config: PipelineConfig,
        settings: Settings,
        gateway: ProviderGateway,
        telemetry: TelemetrySink,
        json_store: RecordStore,
        record_store: Optional[RecordStore] = None,
        clock: Optional[Clock] = None,
        registry: Optional[TemplateRegistry] = None,
    ):
        """
        Initialize the driver.

        Args:
            config: Axes, stage options and policies for the run
            settings: Process settings (environment decides fallback policy)
            gateway: Provider gateway used by both stages and the trending pass
            telemetry: Sink for pipeline events
            json_store: Per-combination JSON batch files (always written)
            record_store: Optional relational store written after the JSON store
            clock: Returns the current UTC time; injectable for tests
            registry: Template registry (default: the process registry)
        """
        self.config = config
        self.settings = settings
        self.gateway = gateway
        self.telemetry = telemetry
        self.json_store = json_store
        self.record_store = record_store
        self.clock = clock or utc_now
        self.registry = registry or get_registry()

    @property
    def fallback_allowed(self) -> bool:
        """Whether a failed live call may be replaced by fallback output."""
        return not self.settings.is_production or self.config.fallback_in_production

    def units(self) -> List[UnitOfWork]:
        """The full key space in visiting order."""
        return [
            UnitOfWork(location, interest)
            for location in self.config.locations
            for interest in self.config.interests
        ]

    def run(self, run_id: Optional[str] = None) -> PipelineRunStats:
        """
        Run the pipeline over every combination.

        Never raises for a single combination's failure.

        Returns:
            Statistics for the run
        """
        stats = PipelineRunStats(
            run_id=run_id or str(uuid.uuid4()),
            total_combinations=self.config.total_combinations,
            started_at=self.clock(),
        )

        self.telemetry.info(
            LogCategory.PIPELINE,
            "Starting LIM pipeline",
            {
                "runId": stats.run_id,
                "environment": self.settings.environment,
                "locations": [l.id for l in self.config.locations],
                "interests": [i.id for i in self.config.interests],
                "persistenceMode": self.config.persistence_mode.value,
                "fallbackAllowed": self.fallback_allowed,
            },
            ["START", "PIPELINE"],
        )

        records_by_interest: Dict[str, List[StructuredRecord]] = {}
        for unit in self.units():
            records = self.process(unit, stats)
            records_by_interest.setdefault(unit.interest.id, []).extend(records)

        if self.config.trending_enabled:
            stats.trending = self.update_trending(records_by_interest)

        stats.finish(self.clock())
        self.telemetry.info(
            LogCategory.PIPELINE,
            "LIM pipeline complete",
            {
                "stats": stats.to_dict(),
                "duration": f"{round(stats.duration_seconds)}s",
                "successRate": f"{round(stats.success_rate)}%",
            },
            ["COMPLETE", "STATS"],
        )
        return stats

    def process(self, unit: UnitOfWork, stats: PipelineRunStats) -> List[StructuredRecord]:
        """
        Process one combination and record its outcome on ``stats``.

        Returns:
            The records stored for the combination (the existing records when
            skipped, none when failed)
        """
        stats.register(unit)
        data = {"location": unit.location.id, "interest": unit.interest.id}

        stage = CombinationState.PENDING
        try:
            if self._is_fresh(unit):
                existing = self.json_store.get_records(*unit.key)
                stats.record_skip(unit)
                self.telemetry.info(
                    LogCategory.PIPELINE, f"Skipped (fresh): {unit.label}", data, ["SKIPPED"]
                )
                return existing

            self.telemetry.info(
                LogCategory.PIPELINE, f"Processing: {unit.label}", data, ["PROCESSING"]
            )

            stage = CombinationState.RESEARCHING
            stats.transition(unit, stage)
            research, _ = self._research(unit)

            stage = CombinationState.STRUCTURING
            stats.transition(unit, stage)
            records, from_fallback = self._structure(unit, research)

            stage = CombinationState.STORING
            stats.transition(unit, stage)
            self._persist(unit, records)
        except Exception as e:
            stats.record_failure(unit, stage, e)
            self.telemetry.error(
                LogCategory.PIPELINE,
                f"Failed: {unit.label}",
                {**data, "stage": stage.value, "errorType": type(e).__name__,
                 "error": str(e), **self._error_details(e)},
                ["FAILURE"],
            )
            return []

        stats.record_success(unit, len(records), from_fallback)
        self.telemetry.info(
            LogCategory.PIPELINE,
            f"Completed: {unit.label}",
            {**data, "records": len(records),
             "source": (RecordSource.FALLBACK if from_fallback else RecordSource.LIVE).value},
            ["SUCCESS"],
        )
        return records

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def _research(self, unit: UnitOfWork) -> Tuple[str, bool]:
        template = self.registry.get(TemplateType.SPOT_RESEARCH)
        params = {"interest": unit.interest.name.lower(), "location": unit.location.name}
        options = self.config.research_options.merged(
            {"tags": list(self.config.research_options.tags) + [unit.interest.id, unit.location.id]}
        )

        def live() -> str:
            result = self.gateway.process_template(template, params, options)
            return result.raw_text

        return self._run_stage("research", unit.label, live, lambda: fallback.research_text(unit))

    def _structure(self, unit: UnitOfWork, research: str) -> Tuple[List[StructuredRecord], bool]:
        template = self.registry.get(TemplateType.SPOT_STRUCTURING)
        count = self.config.records_per_combination
        place_type = fallback.type_for_interest(unit.interest.id)
        params = {
            "interest": unit.interest.name.lower(),
            "location": unit.location.name,
            "research": research,
            "type": place_type,
            "tags": fallback.tags_for_interest(unit.interest.id),
            "count": count,
        }
        options = self.config.structuring_options.merged(
            {"tags": list(self.config.structuring_options.tags) + [unit.interest.id, unit.location.id]}
        )
        timestamp = self.clock()

        def to_records(items: List[Dict[str, Any]], source: RecordSource) -> List[StructuredRecord]:
            by_name: Dict[str, StructuredRecord] = {}
            for index, item in enumerate(items[:count], start=1):
                record = StructuredRecord.from_generated(
                    item, unit, index, source, timestamp=timestamp, default_type=place_type
                )
                by_name[record.name] = record
            return list(by_name.values())

        def live() -> List[StructuredRecord]:
            result = self.gateway.process_template(template, params, options)
            items = result.content
            if isinstance(items, dict) and isinstance(items.get("recommendations"), list):
                items = items["recommendations"]
            if not isinstance(items, list) or not all(isinstance(i, dict) for i in items):
                raise InvalidResponseError(
                    f"Structuring response for {unit.label} is not an array of objects",
                    provider=result.provider.value,
                    response_preview=truncate(result.raw_text),
                )
            try:
                return to_records(items, RecordSource.LIVE)
            except ValueError as e:
                raise InvalidResponseError(str(e), provider=result.provider.value,
                                           response_preview=truncate(result.raw_text))

        def offline() -> List[StructuredRecord]:
            return to_records(fallback.structured_items(unit, count), RecordSource.FALLBACK)

        return self._run_stage("structuring", unit.label, live, offline)

    def _run_stage(self, stage: str, label: str, live: Callable[[], Any],
                   offline: Callable[[], Any]) -> Tuple[Any, bool]:
        """
        Run a live stage, substituting fallback output per policy.

        Returns:
            (value, True if the value came from the fallback)
        """
        try:
            return live(), False
        except CredentialMissingError as e:
            if not self.fallback_allowed:
                raise
            self.telemetry.info(
                LogCategory.LLM,
                f"Using fallback data for {stage} ({label})",
                {"stage": stage, "reason": str(e), "provider": e.provider},
                ["MOCK", stage.upper()],
            )
        except Exception as e:
            if not self.fallback_allowed:
                raise
            self.telemetry.error(
                LogCategory.LLM,
                f"{stage.capitalize()} error for {label}, using fallback data",
                {"stage": stage, "errorType": type(e).__name__, "error": str(e),
                 **self._error_details(e)},
                [f"{stage.upper()}_ERROR", "MOCK"],
            )
        return offline(), True

    def _persist(self, unit: UnitOfWork, records: List[StructuredRecord]) -> None:
        mode = self.config.persistence_mode
        self.json_store.persist(unit, records, mode)
        if self.record_store is not None:
            self.record_store.persist(unit, records, mode)
        logger.debug(f"Stored {len(records)} records for {unit.label} ({mode.value})")

    def _is_fresh(self, unit: UnitOfWork) -> bool:
        window = self.config.skip_if_fresher_than_hours
        if window is None:
            return False
        last = self.json_store.last_updated(unit)
        return last is not None and self.clock() - last < timedelta(hours=window)

    # ------------------------------------------------------------------
    # Trending
    # ------------------------------------------------------------------

    def update_trending(self, records_by_interest: Dict[str, List[StructuredRecord]]) -> List[str]:
        """
        Recompute and store the trending interests.

        Returns:
            Trending interest ids in rank order (empty if the pass failed)
        """
        now = self.clock()
        interests = self.config.interests
        evidence = {i.id: record_evidence(records_by_interest.get(i.id, [])) for i in interests}

        def live() -> List[Dict[str, Any]]:
            template = self.registry.get(TemplateType.TREND_DETECTION)
            options = self.config.structuring_options.merged(
                {"tags": list(self.config.structuring_options.tags) + ["TRENDING"]}
            )
            trends: List[Dict[str, Any]] = []
            for location in self.config.locations:
                result = self.gateway.process_template(
                    template,
                    {"location": location.name, "season": season_for(now.month), "year": now.year},
                    options,
                )
                content = result.content
                if isinstance(content, dict):
                    content = content.get("trends", [])
                if not isinstance(content, list):
                    raise InvalidResponseError(
                        f"Trend response for {location.name} is not an array",
                        provider=result.provider.value,
                        response_preview=truncate(result.raw_text),
                    )
                trends.extend(t for t in content if isinstance(t, dict))
            return trends

        try:
            trends, from_fallback = self._run_stage("trending", "trending interests", live, list)
            top, scores = rank_interests(
                interests, now.month, evidence, trend_boosts(trends, interests),
                top_n=self.config.trending_top_n,
            )
            self.json_store.replace_trending(top, scores, now)
            if self.record_store is not None:
                self.record_store.replace_trending(top, scores, now)
        except Exception as e:
            self.telemetry.error(
                LogCategory.PIPELINE,
                "Failed to update trending interests",
                {"errorType": type(e).__name__, "error": str(e)},
                ["TRENDING", "FAILURE"],
            )
            return []

        self.telemetry.info(
            LogCategory.PIPELINE,
            f"Trending interests: {', '.join(top)}",
            {"trending": top, "scores": scores, "fromFallback": from_fallback},
            ["TRENDING"],
        )
        return top

    @staticmethod
    def _error_details(error: Exception) -> Dict[str, Any]:
        details = {}
        for attr in ("provider", "status_code", "response_preview", "validation_errors"):
            value = getattr(error, attr, None)
            if value:
                details[attr] = value
        return details
