"""Usage engine: scope fan-out and batched concurrent execution.

Execution model:
- Account-scoped metrics issue one query with the account id as scope tag.
- Zone-scoped metrics issue one query per zone concurrently and sum the
  results. A failing zone contributes zero; the metric only errors when
  every zone fails or no zones are configured.
- Metrics run in consecutive batches of ``batch_size`` with a pause between
  batches. One semaphore of the same size caps in-flight backend requests,
  including the per-zone requests of a fan-out.
- An optional overall deadline cancels whatever is still running and
  reports unresolved metrics as timed out.

Nothing raises past ``query_metric``: every failure becomes a UsageRecord
with ``error`` set, and results are assembled by index so output order
always matches input order. Retries belong to the caller.
"""

import asyncio
import logging
import time
from collections.abc import Iterator, Sequence

from whenever import TimeDelta

from usage_monitor.client import GraphQLResponse, QueryExecutor
from usage_monitor.engine.billing import current_billing_period
from usage_monitor.engine.confidence import combine_confidence
from usage_monitor.engine.normalizer import ExtractedUsage, build_usage_record, extract_usage
from usage_monitor.engine.query_builder import UsageQuery, build_query
from usage_monitor.models import (
    BillingPeriod,
    BillingPeriodConfig,
    ConfidenceInterval,
    ContractConfig,
    EngineConfig,
    MetricRuntime,
    MetricScope,
    TrafficFilters,
    UsageRecord,
)

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 5
DEFAULT_BATCH_DELAY = TimeDelta(milliseconds=100)

NO_ZONES_ERROR = "No zone tags configured"
TIMEOUT_ERROR = "Query timed out before the deadline"
DISABLED_NOTE = "Metric not enabled. Enable it in the contract configuration to monitor it."


class UsageEngine:
    """Runs usage queries for a set of metrics against one account.

    Args:
        executor: Query-execution collaborator (e.g. GraphQLClient)
        account_id: Account tag for account-scoped metrics
        batch_size: Metrics per batch, also the in-flight request cap
        batch_delay: Pause between batches
        deadline: Overall time budget per run (None disables it)
        billing: Billing cycle used when no period is passed explicitly
        zone_variants: Account metric id -> zone twin, used to avoid
            reporting the same traffic twice
    """

    def __init__(
        self,
        executor: QueryExecutor,
        account_id: str,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        batch_delay: TimeDelta = DEFAULT_BATCH_DELAY,
        deadline: TimeDelta | None = None,
        billing: BillingPeriodConfig | None = None,
        zone_variants: dict[str, str] | None = None,
    ):
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")
        self._executor = executor
        self._account_id = account_id
        self._batch_size = batch_size
        self._batch_delay = batch_delay
        self._deadline = deadline
        self._billing = billing or BillingPeriodConfig()
        self._zone_variants = dict(zone_variants or {})

    @classmethod
    def from_config(
        cls,
        executor: QueryExecutor,
        account_id: str,
        contract: ContractConfig,
        engine: EngineConfig | None = None,
    ) -> "UsageEngine":
        engine = engine or EngineConfig()
        return cls(
            executor,
            account_id,
            batch_size=engine.batch_size,
            batch_delay=engine.batch_delay,
            deadline=engine.deadline,
            billing=contract.billing_period,
            zone_variants=contract.zone_variants,
        )

    def billing_period(self) -> BillingPeriod:
        return current_billing_period(self._billing.start_day, self._billing.timezone)

    # =========================================================================
    # PUBLIC ENTRY POINTS
    # =========================================================================

    async def query_all_enabled(
        self,
        metrics: Sequence[MetricRuntime],
        zone_tags: Sequence[str],
        filters: TrafficFilters | None = None,
        *,
        period: BillingPeriod | None = None,
    ) -> list[UsageRecord]:
        """Query every enabled metric, one record per metric in input order."""
        enabled = [metric for metric in metrics if metric.enabled]
        return await self.run(enabled, period or self.billing_period(), filters, zone_tags)

    async def query_all_configured(
        self,
        metrics: Sequence[MetricRuntime],
        zone_tags: Sequence[str],
        filters: TrafficFilters | None = None,
        *,
        period: BillingPeriod | None = None,
    ) -> list[UsageRecord]:
        """Query enabled metrics and append disabled ones as unqueried placeholders.

        With a zone filter only zone-scoped metrics are reported. Without one,
        the zone twins of account-wide metrics are hidden.
        """
        period = period or self.billing_period()
        visible = self._visible_metrics(metrics, filters)
        enabled = [metric for metric in visible if metric.enabled]
        disabled = [metric for metric in visible if not metric.enabled]

        records = await self.run(enabled, period, filters, zone_tags)
        records.extend(
            build_usage_record(metric, period, enabled=False, note=DISABLED_NOTE)
            for metric in disabled
        )
        return records

    # =========================================================================
    # BATCHED RUNNER
    # =========================================================================

    async def run(
        self,
        metrics: Sequence[MetricRuntime],
        period: BillingPeriod,
        filters: TrafficFilters | None = None,
        zone_tags: Sequence[str] = (),
    ) -> list[UsageRecord]:
        """Run metrics in paced batches under the overall deadline."""
        loop = asyncio.get_running_loop()
        expires_at = None if self._deadline is None else loop.time() + self._deadline.in_seconds()
        in_flight = asyncio.Semaphore(self._batch_size)
        results: list[UsageRecord | None] = [None] * len(metrics)
        batches = list(self._batches(metrics))
        started = time.perf_counter()

        for number, (offset, batch) in enumerate(batches, start=1):
            remaining = None if expires_at is None else expires_at - loop.time()
            if remaining is not None and remaining <= 0:
                logger.warning("Deadline reached before batch %d/%d", number, len(batches))
                break

            logger.debug("Running batch %d/%d (%d metrics)", number, len(batches), len(batch))
            tasks = [
                asyncio.create_task(
                    self.query_metric(metric, period, filters, zone_tags, in_flight=in_flight)
                )
                for metric in batch
            ]
            try:
                done, pending = await asyncio.wait(tasks, timeout=remaining)
            finally:
                for task in tasks:
                    if not task.done():
                        task.cancel()

            for index, task in enumerate(tasks):
                if task in done:
                    results[offset + index] = task.result()

            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
                logger.warning(
                    "Deadline reached with %d queries in flight in batch %d/%d",
                    len(pending),
                    number,
                    len(batches),
                )
                break

            if number < len(batches):
                await asyncio.sleep(self._pause_seconds(expires_at, loop.time()))

        records = [
            record
            if record is not None
            else build_usage_record(metric, period, error=TIMEOUT_ERROR)
            for metric, record in zip(metrics, results, strict=True)
        ]
        logger.info(
            "Queried %d metrics in %d batches (%.0f ms, %d errors)",
            len(records),
            len(batches),
            (time.perf_counter() - started) * 1000,
            sum(1 for record in records if record.error),
        )
        return records

    def _batches(
        self, metrics: Sequence[MetricRuntime]
    ) -> Iterator[tuple[int, Sequence[MetricRuntime]]]:
        for offset in range(0, len(metrics), self._batch_size):
            yield offset, metrics[offset : offset + self._batch_size]

    def _pause_seconds(self, expires_at: float | None, now: float) -> float:
        pause = self._batch_delay.in_seconds()
        if expires_at is not None:
            pause = min(pause, max(0.0, expires_at - now))
        return pause

    # =========================================================================
    # SCOPE FAN-OUT
    # =========================================================================

    async def query_metric(
        self,
        metric: MetricRuntime,
        period: BillingPeriod,
        filters: TrafficFilters | None = None,
        zone_tags: Sequence[str] = (),
        *,
        in_flight: asyncio.Semaphore | None = None,
    ) -> UsageRecord:
        """Query one metric across its scope. Never raises."""
        in_flight = in_flight or asyncio.Semaphore(self._batch_size)
        started = time.perf_counter()
        value: float = 0.0
        confidence: ConfidenceInterval | None = None
        error: str | None = None

        try:
            query = build_query(metric, period, filters)
            if metric.scope == MetricScope.ACCOUNT:
                usage = await self._execute(query, metric, self._account_id, in_flight)
                value, confidence = usage.value, usage.confidence
            else:
                tags = self._zone_tags_for(metric, zone_tags, filters)
                value, confidence, error = await self._fan_out(query, metric, tags, in_flight)
        except Exception as e:
            logger.error("Usage query failed for %s: %s", metric.id, e)
            error = str(e) or type(e).__name__

        return build_usage_record(
            metric,
            period,
            value=value,
            confidence=confidence,
            error=error,
            duration_ms=(time.perf_counter() - started) * 1000,
        )

    async def _fan_out(
        self,
        query: UsageQuery,
        metric: MetricRuntime,
        zone_tags: Sequence[str],
        in_flight: asyncio.Semaphore,
    ) -> tuple[float, ConfidenceInterval | None, str | None]:
        if not zone_tags:
            return 0.0, None, NO_ZONES_ERROR

        outcomes = await asyncio.gather(
            *(self._execute(query, metric, tag, in_flight) for tag in zone_tags),
            return_exceptions=True,
        )

        usages: list[ExtractedUsage] = []
        failures: list[str] = []
        for tag, outcome in zip(zone_tags, outcomes, strict=True):
            if isinstance(outcome, BaseException):
                logger.warning("Zone %s failed for %s: %s", tag, metric.id, outcome)
                failures.append(str(outcome) or type(outcome).__name__)
            else:
                usages.append(outcome)

        if not usages:
            return 0.0, None, "; ".join(dict.fromkeys(failures))

        value = sum(usage.value for usage in usages)
        confidence = combine_confidence(usage.confidence for usage in usages)
        return value, confidence, None

    async def _execute(
        self,
        query: UsageQuery,
        metric: MetricRuntime,
        scope_tag: str,
        in_flight: asyncio.Semaphore,
    ) -> ExtractedUsage:
        async with in_flight:
            payload = await self._executor.execute(query.text, query.variables(scope_tag))
        response = GraphQLResponse.model_validate(payload)
        response.raise_for_errors()
        return extract_usage(response.data, metric)

    # =========================================================================
    # SCOPE SELECTION
    # =========================================================================

    def _zone_tags_for(
        self,
        metric: MetricRuntime,
        zone_tags: Sequence[str],
        filters: TrafficFilters | None,
    ) -> Sequence[str]:
        if filters is not None and filters.zone_id:
            return [filters.zone_id]
        if metric.zone_tags is not None:
            return metric.zone_tags
        return zone_tags

    def _visible_metrics(
        self,
        metrics: Sequence[MetricRuntime],
        filters: TrafficFilters | None,
    ) -> list[MetricRuntime]:
        if filters is not None and filters.zone_id:
            return [metric for metric in metrics if metric.scope == MetricScope.ZONE]
        hidden = set(self._zone_variants.values())
        return [metric for metric in metrics if metric.id not in hidden]
