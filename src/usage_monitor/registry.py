"""Metric registry: single source of truth for every monitored usage metric.

Definitions are plain data. Limits are starting points; the contract
configuration overrides them per metric (see ``resolve_metrics``).
"""

from collections.abc import Iterable, Sequence

from usage_monitor.models import (
    Aggregation,
    ContractConfig,
    MetricCategory,
    MetricDefinition,
    MetricRuntime,
    MetricScope,
    TimeFilterKind,
    UnitTransform,
)

KIB = 1024
GIB = KIB**3
TIB = KIB**4

# R2 mutating operations (write/list), billed as Class A
R2_CLASS_A_ACTIONS = [
    "ListBuckets",
    "PutBucket",
    "ListObjects",
    "PutObject",
    "CopyObject",
    "CompleteMultipartUpload",
    "CreateMultipartUpload",
    "LifecycleStorageTierTransition",
    "ListMultipartUploads",
    "UploadPart",
    "UploadPartCopy",
    "ListParts",
    "PutBucketEncryption",
    "PutBucketCors",
    "PutBucketLifecycleConfiguration",
]

# R2 read operations, billed as Class B
R2_CLASS_B_ACTIONS = [
    "HeadBucket",
    "HeadObject",
    "GetObject",
    "UsageSummary",
    "GetBucketEncryption",
    "GetBucketLocation",
    "GetBucketCors",
    "GetBucketLifecycleConfiguration",
]


class ConfigurationError(ValueError):
    pass


class UnknownMetricError(ConfigurationError):
    def __init__(self, metric_id: str) -> None:
        self.metric_id = metric_id
        super().__init__(f"Unknown metric '{metric_id}'")


class MetricRegistry:
    """Registry of all known usage metrics, in registration order."""

    def __init__(self) -> None:
        self._entries: dict[str, MetricDefinition] = {}

    def register(self, definition: MetricDefinition) -> None:
        if definition.id in self._entries:
            raise ValueError(f"Metric '{definition.id}' is already registered")
        self._entries[definition.id] = definition

    def get(self, metric_id: str) -> MetricDefinition | None:
        return self._entries.get(metric_id)

    def require(self, metric_id: str) -> MetricDefinition:
        definition = self._entries.get(metric_id)
        if definition is None:
            raise UnknownMetricError(metric_id)
        return definition

    def list_by_category(self, category: MetricCategory) -> list[MetricDefinition]:
        return [d for d in self._entries.values() if d.category == category]

    def list_by_scope(self, scope: MetricScope) -> list[MetricDefinition]:
        return [d for d in self._entries.values() if d.scope == scope]

    def enabled_by_default(self) -> list[MetricDefinition]:
        return [d for d in self._entries.values() if d.enabled_by_default]

    def categories(self) -> list[MetricCategory]:
        return list(dict.fromkeys(d.category for d in self._entries.values()))

    def all_ids(self) -> list[str]:
        return list(self._entries.keys())

    def all_definitions(self) -> list[MetricDefinition]:
        return list(self._entries.values())

    def __contains__(self, metric_id: object) -> bool:
        return metric_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)


# =============================================================================
# CONTRACT MERGE
# =============================================================================


def resolve_metrics(
    registry: MetricRegistry,
    contract: ContractConfig,
    default_zone_tags: Sequence[str] = (),
) -> list[MetricRuntime]:
    """Merge every catalog entry with its contract override.

    ``limit`` and ``enabled`` fall back to the catalog defaults. Zone-scoped
    metrics get the override's zone list when set, else ``default_zone_tags``.

    Raises:
        UnknownMetricError: An override names a metric the registry lacks
    """
    for metric_id in contract.metric_overrides:
        registry.require(metric_id)

    runtimes = []
    for definition in registry.all_definitions():
        override = contract.metric_overrides.get(definition.id)
        limit = definition.default_limit
        enabled = definition.enabled_by_default
        zone_tags = None
        if override is not None:
            if override.limit is not None:
                limit = override.limit
            if override.enabled is not None:
                enabled = override.enabled
            zone_tags = override.zone_tags
        if definition.scope == MetricScope.ZONE and zone_tags is None:
            zone_tags = list(default_zone_tags)

        runtimes.append(
            MetricRuntime(
                **definition.model_dump(),
                limit=limit,
                enabled=enabled,
                zone_tags=zone_tags if definition.scope == MetricScope.ZONE else None,
            )
        )
    return runtimes


def enabled_metrics(
    registry: MetricRegistry,
    contract: ContractConfig,
    default_zone_tags: Sequence[str] = (),
) -> list[MetricRuntime]:
    return [m for m in resolve_metrics(registry, contract, default_zone_tags) if m.enabled]


def select_metrics(
    metrics: Iterable[MetricRuntime],
    metric_ids: Sequence[str] | None,
) -> list[MetricRuntime]:
    """Keep only the named metrics (all of them when ``metric_ids`` is None)."""
    if metric_ids is None:
        return list(metrics)
    wanted = set(metric_ids)
    return [metric for metric in metrics if metric.id in wanted]


# =============================================================================
# DEFAULT CATALOG
# =============================================================================


def _register_compute(registry: MetricRegistry) -> None:
    compute = MetricCategory.COMPUTE
    registry.register(
        MetricDefinition(
            id="workers_requests",
            name="Workers Requests",
            category=compute,
            description="Total number of requests handled by Workers",
            dataset="workersInvocationsAdaptive",
            field="requests",
            scope=MetricScope.ACCOUNT,
            unit="requests",
            default_limit=10_000_000,
            enabled_by_default=True,
            docs_url="https://developers.cloudflare.com/workers/",
        )
    )
    registry.register(
        MetricDefinition(
            id="workers_cpu_time",
            name="Workers CPU Time",
            category=compute,
            description="Total CPU time consumed by Workers",
            dataset="workersInvocationsAdaptive",
            field="cpuTimeUs",
            scope=MetricScope.ACCOUNT,
            unit_transform=UnitTransform.MICROSECONDS_TO_MILLISECONDS,
            unit="ms",
            default_limit=30_000_000,
            enabled_by_default=True,
            docs_url="https://developers.cloudflare.com/workers/platform/limits/",
        )
    )
    registry.register(
        MetricDefinition(
            id="workers_duration",
            name="Workers Duration",
            category=compute,
            description="Total wall-clock duration of Worker executions",
            dataset="workersInvocationsAdaptive",
            field="duration",
            scope=MetricScope.ACCOUNT,
            unit="ms",
            default_limit=100_000_000,
            enabled_by_default=True,
            note="Wall-clock time (not billed). CPU time is the billable metric.",
        )
    )
    registry.register(
        MetricDefinition(
            id="workers_subrequests",
            name="Workers Subrequests",
            category=compute,
            description="Subrequests (fetch calls) made by Workers",
            dataset="workersSubrequestsAdaptiveGroups",
            aggregation=Aggregation.COUNT,
            scope=MetricScope.ACCOUNT,
            unit="requests",
            default_limit=50_000_000,
            note="Dataset may not be available on all accounts.",
        )
    )
    registry.register(
        MetricDefinition(
            id="pages_requests",
            name="Pages Requests",
            category=compute,
            description="Total requests to Cloudflare Pages sites",
            dataset="pagesRequestsAdaptiveGroups",
            field="requests",
            scope=MetricScope.ACCOUNT,
            unit="requests",
            unlimited=True,
            note="Static asset requests included. Pages Functions are billed as Workers.",
        )
    )
    registry.register(
        MetricDefinition(
            id="pages_functions_invocations",
            name="Pages Functions Invocations",
            category=compute,
            description="Function invocations on Cloudflare Pages",
            dataset="pagesFunctionsInvocationsAdaptiveGroups",
            aggregation=Aggregation.COUNT,
            scope=MetricScope.ACCOUNT,
            unit="invocations",
            default_limit=100_000,
        )
    )
    registry.register(
        MetricDefinition(
            id="queues_messages",
            name="Queues Messages",
            category=compute,
            description="Total messages processed by Queues",
            dataset="queuesAdaptiveGroups",
            field="messages",
            scope=MetricScope.ACCOUNT,
            unit="messages",
            default_limit=1_000_000,
        )
    )


def _register_storage(registry: MetricRegistry) -> None:
    storage = MetricCategory.STORAGE
    registry.register(
        MetricDefinition(
            id="r2_class_a_operations",
            name="R2 Class A Operations",
            category=storage,
            description="R2 mutating operations (PUT, LIST, multipart uploads)",
            dataset="r2OperationsAdaptiveGroups",
            field="requests",
            scope=MetricScope.ACCOUNT,
            dimension_filters={"actionType_in": R2_CLASS_A_ACTIONS},
            unit="operations",
            default_limit=1_000_000,
            enabled_by_default=True,
            docs_url="https://developers.cloudflare.com/r2/pricing/",
        )
    )
    registry.register(
        MetricDefinition(
            id="r2_class_b_operations",
            name="R2 Class B Operations",
            category=storage,
            description="R2 read operations (GET, HEAD)",
            dataset="r2OperationsAdaptiveGroups",
            field="requests",
            scope=MetricScope.ACCOUNT,
            dimension_filters={"actionType_in": R2_CLASS_B_ACTIONS},
            unit="operations",
            default_limit=10_000_000,
            enabled_by_default=True,
            docs_url="https://developers.cloudflare.com/r2/pricing/",
        )
    )
    registry.register(
        MetricDefinition(
            id="r2_storage",
            name="R2 Storage",
            category=storage,
            description="Total storage used by R2 buckets",
            dataset="r2StorageAdaptiveGroups",
            field="payloadSize",
            aggregation=Aggregation.MAX,
            scope=MetricScope.ACCOUNT,
            unit="bytes",
            default_limit=10 * GIB,
            enabled_by_default=True,
        )
    )
    registry.register(
        MetricDefinition(
            id="r2_egress",
            name="R2 Egress",
            category=storage,
            description="Data transferred out of R2",
            dataset="r2OperationsAdaptiveGroups",
            field="responseBytes",
            scope=MetricScope.ACCOUNT,
            unit="bytes",
            note="R2 has no egress fees; informational only.",
        )
    )
    registry.register(
        MetricDefinition(
            id="kv_reads",
            name="KV Reads",
            category=storage,
            description="Total KV read operations",
            dataset="workersKvStorageAdaptiveGroups",
            field="readOperations",
            scope=MetricScope.ACCOUNT,
            unit="operations",
            default_limit=10_000_000,
        )
    )
    registry.register(
        MetricDefinition(
            id="kv_writes",
            name="KV Writes",
            category=storage,
            description="Total KV write/delete/list operations",
            dataset="workersKvStorageAdaptiveGroups",
            field="writeOperations",
            scope=MetricScope.ACCOUNT,
            unit="operations",
            default_limit=1_000_000,
        )
    )
    registry.register(
        MetricDefinition(
            id="d1_rows_read",
            name="D1 Rows Read",
            category=storage,
            description="Total rows read from D1 databases",
            dataset="d1AnalyticsAdaptiveGroups",
            field="rowsRead",
            scope=MetricScope.ACCOUNT,
            time_filter=TimeFilterKind.DATE,
            unit="rows",
            default_limit=25_000_000_000,
            enabled_by_default=True,
        )
    )
    registry.register(
        MetricDefinition(
            id="d1_rows_written",
            name="D1 Rows Written",
            category=storage,
            description="Total rows written to D1 databases",
            dataset="d1AnalyticsAdaptiveGroups",
            field="rowsWritten",
            scope=MetricScope.ACCOUNT,
            time_filter=TimeFilterKind.DATE,
            unit="rows",
            default_limit=50_000_000,
            enabled_by_default=True,
        )
    )
    registry.register(
        MetricDefinition(
            id="durable_objects_requests",
            name="Durable Objects Requests",
            category=storage,
            description="Total requests to Durable Objects",
            dataset="durableObjectsInvocationsAdaptiveGroups",
            field="requests",
            scope=MetricScope.ACCOUNT,
            unit="requests",
            default_limit=1_000_000,
            enabled_by_default=True,
        )
    )
    registry.register(
        MetricDefinition(
            id="durable_objects_storage",
            name="Durable Objects Storage",
            category=storage,
            description="Storage used by Durable Objects (SQLite)",
            dataset="durableObjectsStorageGroups",
            field="storedBytes",
            aggregation=Aggregation.MAX,
            scope=MetricScope.ACCOUNT,
            time_filter=TimeFilterKind.DATE,
            unit="bytes",
            default_limit=5 * GIB,
            enabled_by_default=True,
        )
    )
    registry.register(
        MetricDefinition(
            id="durable_objects_subrequests",
            name="Durable Objects Subrequests",
            category=storage,
            description="Subrequests made by Durable Objects",
            dataset="durableObjectsSubrequestsAdaptiveGroups",
            aggregation=Aggregation.COUNT,
            scope=MetricScope.ACCOUNT,
            unit="requests",
            default_limit=10_000_000,
        )
    )


def _register_network(registry: MetricRegistry) -> None:
    network = MetricCategory.NETWORK
    registry.register(
        MetricDefinition(
            id="http_requests",
            name="HTTP Requests (Account)",
            category=network,
            description="Total HTTP requests across all zones in the account",
            dataset="httpRequestsAdaptiveGroups",
            aggregation=Aggregation.COUNT,
            scope=MetricScope.ACCOUNT,
            unit="requests",
            default_limit=100_000_000,
            enabled_by_default=True,
            note="Set the limit from your contract. DDoS traffic is excluded from billing.",
        )
    )
    registry.register(
        MetricDefinition(
            id="http_requests_zone",
            name="HTTP Requests",
            category=network,
            description="HTTP requests for this zone",
            dataset="httpRequestsAdaptiveGroups",
            aggregation=Aggregation.COUNT,
            scope=MetricScope.ZONE,
            unit="requests",
            default_limit=100_000_000,
            enabled_by_default=True,
        )
    )
    registry.register(
        MetricDefinition(
            id="bandwidth",
            name="Bandwidth (Account)",
            category=network,
            description="Total bandwidth served across all zones in the account",
            dataset="httpRequestsAdaptiveGroups",
            field="edgeResponseBytes",
            scope=MetricScope.ACCOUNT,
            unit="bytes",
            default_limit=1 * TIB,
            enabled_by_default=True,
        )
    )
    registry.register(
        MetricDefinition(
            id="bandwidth_zone",
            name="Bandwidth",
            category=network,
            description="Bandwidth served for this zone",
            dataset="httpRequestsAdaptiveGroups",
            field="edgeResponseBytes",
            scope=MetricScope.ZONE,
            unit="bytes",
            default_limit=1 * TIB,
            enabled_by_default=True,
        )
    )
    registry.register(
        MetricDefinition(
            id="cached_bandwidth",
            name="Cached Bandwidth (Account)",
            category=network,
            description="Bandwidth served from cache across all zones",
            dataset="httpRequests1dGroups",
            field="cachedBytes",
            scope=MetricScope.ACCOUNT,
            time_filter=TimeFilterKind.DATE,
            unit="bytes",
            default_limit=1 * TIB,
            enabled_by_default=True,
        )
    )
    registry.register(
        MetricDefinition(
            id="cached_bandwidth_zone",
            name="Cached Bandwidth",
            category=network,
            description="Bandwidth served from cache for this zone",
            dataset="httpRequests1dGroups",
            field="cachedBytes",
            scope=MetricScope.ZONE,
            time_filter=TimeFilterKind.DATE,
            unit="bytes",
            default_limit=1 * TIB,
            enabled_by_default=True,
        )
    )
    registry.register(
        MetricDefinition(
            id="dns_queries",
            name="DNS Queries (Account)",
            category=network,
            description="Total authoritative DNS queries across all zones",
            dataset="dnsAnalyticsAdaptiveGroups",
            aggregation=Aggregation.COUNT,
            scope=MetricScope.ACCOUNT,
            time_filter=TimeFilterKind.DATE,
            unit="queries",
            default_limit=1_000_000_000,
            enabled_by_default=True,
        )
    )
    registry.register(
        MetricDefinition(
            id="load_balancer_requests",
            name="Load Balancer Requests",
            category=network,
            description="Requests handled by Load Balancing",
            dataset="loadBalancingRequestsAdaptiveGroups",
            aggregation=Aggregation.COUNT,
            scope=MetricScope.ZONE,
            unit="requests",
            default_limit=10_000_000,
            enabled_by_default=True,
        )
    )
    registry.register(
        MetricDefinition(
            id="argo_bandwidth",
            name="Argo Smart Routing Bandwidth",
            category=network,
            description="Bandwidth using Argo Smart Routing",
            dataset="httpRequestsAdaptiveGroups",
            field="edgeResponseBytes",
            scope=MetricScope.ZONE,
            unit="bytes",
            default_limit=5 * TIB,
            enabled_by_default=True,
        )
    )
    registry.register(
        MetricDefinition(
            id="cache_reserve_operations",
            name="Cache Reserve Operations",
            category=network,
            description="Operations to Cache Reserve storage (Class A writes + Class B reads)",
            dataset="cacheReserveOperationsAdaptiveGroups",
            field="requests",
            scope=MetricScope.ZONE,
            unit="operations",
            default_limit=10_000_000,
            enabled_by_default=True,
            note="Requires Cache Reserve on the zone. Shows 0 if not enabled.",
        )
    )
    registry.register(
        MetricDefinition(
            id="cache_reserve_storage",
            name="Cache Reserve Storage",
            category=network,
            description="Current storage used by Cache Reserve (point-in-time max)",
            dataset="cacheReserveStorageAdaptiveGroups",
            field="storedBytes",
            aggregation=Aggregation.MAX,
            scope=MetricScope.ZONE,
            unit="bytes",
            default_limit=100 * GIB,
            enabled_by_default=True,
            note="Requires Cache Reserve on the zone. Shows 0 if not enabled.",
        )
    )
    registry.register(
        MetricDefinition(
            id="waiting_room_events",
            name="Waiting Room Events",
            category=network,
            description="Visitors processed by Waiting Room (informational only)",
            dataset="waitingRoomAnalyticsAdaptiveGroups",
            aggregation=Aggregation.COUNT,
            scope=MetricScope.ZONE,
            unit="events",
            note="Waiting Room is billed per room, not by visitor events.",
        )
    )
    registry.register(
        MetricDefinition(
            id="health_check_events",
            name="Health Check Events",
            category=network,
            description="Health check events for Load Balancing origins",
            dataset="healthCheckEventsAdaptiveGroups",
            aggregation=Aggregation.COUNT,
            scope=MetricScope.ACCOUNT,
            unit="events",
            unlimited=True,
        )
    )
    registry.register(
        MetricDefinition(
            id="spectrum_bytes",
            name="Spectrum Bandwidth",
            category=network,
            description="Bandwidth proxied through Spectrum",
            dataset="spectrumNetworkAnalyticsAdaptiveGroups",
            field="bytes",
            scope=MetricScope.ACCOUNT,
            unit="bytes",
            default_limit=1 * TIB,
        )
    )
    registry.register(
        MetricDefinition(
            id="magic_transit_bytes",
            name="Magic Transit Bandwidth",
            category=network,
            description="Bandwidth processed by Magic Transit",
            dataset="magicTransitNetworkAnalyticsAdaptiveGroups",
            field="bytes",
            scope=MetricScope.ACCOUNT,
            unit="bytes",
            default_limit=10 * TIB,
        )
    )
    registry.register(
        MetricDefinition(
            id="magic_wan_bytes",
            name="Magic WAN Bandwidth",
            category=network,
            description="Bandwidth through Magic WAN connectors",
            dataset="magicWanConnectorMetricsAdaptiveGroups",
            field="bytes",
            scope=MetricScope.ACCOUNT,
            unit="bytes",
            default_limit=1 * TIB,
        )
    )


def _register_security(registry: MetricRegistry) -> None:
    security = MetricCategory.SECURITY
    registry.register(
        MetricDefinition(
            id="firewall_events",
            name="WAF/Firewall Events",
            category=security,
            description="Events triggered by WAF and firewall rules",
            dataset="firewallEventsAdaptiveGroups",
            aggregation=Aggregation.COUNT,
            scope=MetricScope.ZONE,
            unit="events",
            enabled_by_default=True,
            unlimited=True,
        )
    )
    registry.register(
        MetricDefinition(
            id="bot_management_requests",
            name="Bot Management Requests",
            category=security,
            description="Requests analyzed by Bot Management",
            dataset="httpRequestsAdaptiveGroups",
            aggregation=Aggregation.COUNT,
            scope=MetricScope.ZONE,
            unit="requests",
            default_limit=100_000_000,
            enabled_by_default=True,
        )
    )
    registry.register(
        MetricDefinition(
            id="rate_limiting_requests",
            name="Rate Limiting Requests",
            category=security,
            description="Requests processed by Rate Limiting rules",
            dataset="httpRequestsAdaptiveGroups",
            aggregation=Aggregation.COUNT,
            scope=MetricScope.ZONE,
            unit="requests",
            enabled_by_default=True,
            unlimited=True,
        )
    )
    registry.register(
        MetricDefinition(
            id="turnstile_challenges",
            name="Turnstile Challenges",
            category=security,
            description="Turnstile challenges issued",
            dataset="turnstileAdaptiveGroups",
            aggregation=Aggregation.COUNT,
            scope=MetricScope.ACCOUNT,
            unit="challenges",
            unlimited=True,
            note="Data retention is about 7 days; a full billing period cannot be queried.",
        )
    )
    registry.register(
        MetricDefinition(
            id="page_shield_violations",
            name="Page Shield Violations",
            category=security,
            description="Page Shield policy violations detected (informational only)",
            dataset="pageShieldReportsAdaptiveGroups",
            aggregation=Aggregation.COUNT,
            scope=MetricScope.ZONE,
            unit="violations",
        )
    )
    registry.register(
        MetricDefinition(
            id="api_gateway_sessions",
            name="API Gateway Sessions",
            category=security,
            description="API sessions tracked by API Gateway (informational only)",
            dataset="apiGatewayMatchedSessionIDsAdaptiveGroups",
            aggregation=Aggregation.COUNT,
            scope=MetricScope.ZONE,
            unit="sessions",
            default_limit=1_000_000,
        )
    )
    registry.register(
        MetricDefinition(
            id="ddos_attacks",
            name="DDoS Attacks Detected",
            category=security,
            description="DDoS attacks detected and mitigated",
            dataset="dosdAttackAnalyticsGroups",
            aggregation=Aggregation.COUNT,
            scope=MetricScope.ACCOUNT,
            unit="attacks",
            unlimited=True,
        )
    )
    registry.register(
        MetricDefinition(
            id="dmarc_reports",
            name="DMARC Reports",
            category=security,
            description="DMARC aggregate reports received",
            dataset="dmarcReportsAdaptiveGroups",
            aggregation=Aggregation.COUNT,
            scope=MetricScope.ACCOUNT,
            unit="reports",
            default_limit=100_000,
        )
    )
    registry.register(
        MetricDefinition(
            id="magic_firewall_packets",
            name="Magic Firewall Packets",
            category=security,
            description="Packets processed by Magic Firewall",
            dataset="magicFirewallNetworkAnalyticsAdaptiveGroups",
            field="packets",
            scope=MetricScope.ACCOUNT,
            unit="packets",
            enabled_by_default=True,
            unlimited=True,
        )
    )


def _register_media(registry: MetricRegistry) -> None:
    media = MetricCategory.MEDIA
    registry.register(
        MetricDefinition(
            id="stream_minutes_viewed",
            name="Stream Minutes Viewed",
            category=media,
            description="Minutes of video delivered via Stream",
            dataset="streamMinutesViewedAdaptiveGroups",
            field="minutesViewed",
            scope=MetricScope.ACCOUNT,
            unit="minutes",
            default_limit=10_000,
            enabled_by_default=True,
        )
    )
    registry.register(
        MetricDefinition(
            id="stream_minutes_stored",
            name="Stream Minutes Stored",
            category=media,
            description="Minutes of video stored on Stream",
            dataset="streamMinutesStoredAdaptiveGroups",
            field="minutesStored",
            scope=MetricScope.ACCOUNT,
            unit="minutes",
            default_limit=1_000,
        )
    )
    registry.register(
        MetricDefinition(
            id="images_delivered",
            name="Images Delivered",
            category=media,
            description="Number of images delivered via Cloudflare Images",
            dataset="imagesRequestsAdaptiveGroups",
            field="requests",
            scope=MetricScope.ACCOUNT,
            unit="images",
            default_limit=5_000_000,
            enabled_by_default=True,
        )
    )
    registry.register(
        MetricDefinition(
            id="images_transformations",
            name="Images Transformations",
            category=media,
            description="Unique image transformations performed",
            dataset="imagesTransformationsAdaptiveGroups",
            aggregation=Aggregation.COUNT,
            scope=MetricScope.ACCOUNT,
            unit="transformations",
            default_limit=1_000_000,
        )
    )


def _register_ai(registry: MetricRegistry) -> None:
    ai = MetricCategory.AI
    registry.register(
        MetricDefinition(
            id="workers_ai_requests",
            name="Workers AI Requests",
            category=ai,
            description="Inference requests to Workers AI",
            dataset="aiInferenceAdaptiveGroups",
            aggregation=Aggregation.COUNT,
            scope=MetricScope.ACCOUNT,
            unit="requests",
            default_limit=10_000,
            enabled_by_default=True,
        )
    )
    registry.register(
        MetricDefinition(
            id="workers_ai_neurons",
            name="Workers AI Neurons",
            category=ai,
            description="Neurons used by Workers AI",
            dataset="aiInferenceAdaptiveGroups",
            field="neurons",
            scope=MetricScope.ACCOUNT,
            unit="neurons",
            default_limit=300_000,
        )
    )
    registry.register(
        MetricDefinition(
            id="ai_gateway_requests",
            name="AI Gateway Requests",
            category=ai,
            description="Requests routed through AI Gateway",
            dataset="aiGatewayRequestsAdaptiveGroups",
            aggregation=Aggregation.COUNT,
            scope=MetricScope.ACCOUNT,
            time_filter=TimeFilterKind.DATE,
            unit="requests",
            default_limit=1_000_000,
            enabled_by_default=True,
        )
    )
    registry.register(
        MetricDefinition(
            id="vectorize_queries",
            name="Vectorize Queries",
            category=ai,
            description="Vector queries to Vectorize indexes",
            dataset="vectorizeQueriesAdaptiveGroups",
            field="queries",
            scope=MetricScope.ACCOUNT,
            time_filter=TimeFilterKind.DATE,
            unit="queries",
            default_limit=1_000_000,
        )
    )
    registry.register(
        MetricDefinition(
            id="vectorize_storage",
            name="Vectorize Storage",
            category=ai,
            description="Vector dimensions stored in Vectorize",
            dataset="vectorizeStorageAdaptiveGroups",
            field="dimensions",
            scope=MetricScope.ACCOUNT,
            time_filter=TimeFilterKind.DATE,
            unit="dimensions",
            default_limit=5_000_000,
        )
    )


def _register_connectivity(registry: MetricRegistry) -> None:
    connectivity = MetricCategory.CONNECTIVITY
    included = "Included with Zero Trust seats."
    for metric_id, name, description, dataset, unit, enabled in (
        (
            "tunnel_requests",
            "Cloudflare Tunnel Requests",
            "Requests through Cloudflare Tunnels",
            "cloudflareTunnelsAnalyticsAdaptiveGroups",
            "requests",
            False,
        ),
        (
            "gateway_dns_queries",
            "Gateway DNS Queries",
            "DNS queries through Cloudflare Gateway",
            "gatewayResolverQueriesAdaptiveGroups",
            "queries",
            True,
        ),
        (
            "gateway_http_requests",
            "Gateway HTTP Requests",
            "HTTP requests through Cloudflare Gateway",
            "gatewayL7RequestsAdaptiveGroups",
            "requests",
            True,
        ),
        (
            "gateway_network_sessions",
            "Gateway Network Sessions",
            "L4 network sessions through Gateway",
            "gatewayL4SessionsAdaptiveGroups",
            "sessions",
            True,
        ),
        (
            "access_requests",
            "Access Requests",
            "Authentication requests to Cloudflare Access",
            "accessRequestsAdaptiveGroups",
            "requests",
            False,
        ),
        (
            "browser_isolation_sessions",
            "Browser Isolation Sessions",
            "Remote browser isolation sessions",
            "browserIsolationSessionsAdaptiveGroups",
            "sessions",
            True,
        ),
        (
            "warp_devices",
            "WARP Device Sessions",
            "Active WARP client device sessions (informational only)",
            "warpDeviceAdaptiveGroups",
            "sessions",
            False,
        ),
    ):
        registry.register(
            MetricDefinition(
                id=metric_id,
                name=name,
                category=connectivity,
                description=description,
                dataset=dataset,
                aggregation=Aggregation.COUNT,
                scope=MetricScope.ACCOUNT,
                unit=unit,
                enabled_by_default=enabled,
                unlimited=True,
                note=included,
            )
        )

    registry.register(
        MetricDefinition(
            id="access_login_requests",
            name="Access Login Requests",
            category=connectivity,
            description="Authentication attempts to Access applications",
            dataset="accessLoginRequestsAdaptiveGroups",
            aggregation=Aggregation.COUNT,
            scope=MetricScope.ACCOUNT,
            unit="requests",
            default_limit=1_000_000,
            note="Data retention is about 7 days; a full billing period cannot be queried.",
        )
    )


def _register_platform(registry: MetricRegistry) -> None:
    platform = MetricCategory.PLATFORM
    registry.register(
        MetricDefinition(
            id="email_routing_messages",
            name="Email Routing Messages",
            category=platform,
            description="Emails routed through Cloudflare Email Routing",
            dataset="emailRoutingAdaptiveGroups",
            aggregation=Aggregation.COUNT,
            scope=MetricScope.ZONE,
            unit="messages",
            note="Inbound Email Routing is free.",
        )
    )
    registry.register(
        MetricDefinition(
            id="zaraz_events",
            name="Zaraz Events",
            category=platform,
            description="Events processed by Zaraz tag manager",
            dataset="zarazTrackAdaptiveGroups",
            aggregation=Aggregation.COUNT,
            scope=MetricScope.ZONE,
            time_filter=TimeFilterKind.DATETIME_HOUR,
            unit="events",
            default_limit=1_000_000,
            enabled_by_default=True,
        )
    )
    registry.register(
        MetricDefinition(
            id="logpush_jobs",
            name="Logpush Job Events",
            category=platform,
            description="Logpush job execution events (informational only)",
            dataset="logpushHealthAdaptiveGroups",
            aggregation=Aggregation.COUNT,
            scope=MetricScope.ACCOUNT,
            unit="events",
        )
    )
    registry.register(
        MetricDefinition(
            id="web_analytics_events",
            name="Web Analytics Events",
            category=platform,
            description="Real User Monitoring page load events",
            dataset="rumPageloadEventsAdaptiveGroups",
            aggregation=Aggregation.COUNT,
            scope=MetricScope.ACCOUNT,
            unit="events",
        )
    )
    registry.register(
        MetricDefinition(
            id="web_vitals_events",
            name="Web Vitals Events",
            category=platform,
            description="Core Web Vitals measurements collected",
            dataset="rumWebVitalsEventsAdaptiveGroups",
            aggregation=Aggregation.COUNT,
            scope=MetricScope.ACCOUNT,
            unit="events",
        )
    )


def build_default_registry() -> MetricRegistry:
    """Build the default registry populated with the full metric catalog."""
    registry = MetricRegistry()

    _register_compute(registry)
    _register_storage(registry)
    _register_network(registry)
    _register_security(registry)
    _register_media(registry)
    _register_ai(registry)
    _register_connectivity(registry)
    _register_platform(registry)

    return registry
