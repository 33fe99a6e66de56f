"""FastAPI service exposing on-demand usage checks.

Usage and catalog requests query the analytics backend live; nothing is
cached or stored. ``/api/workflow`` routes start and inspect monitor runs
on Temporal. When ``api_access_key`` is configured, ``/api`` routes
require it as a Bearer token or an ``X-API-Key`` header.

Response models use native whenever.Instant fields; FastAPI and Pydantic
serialize them to ISO 8601 automatically.
"""

import hmac
import logging
import re
import uuid
from contextlib import asynccontextmanager
from typing import Annotated

import httpx
from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from temporalio.client import Client, WorkflowQueryFailedError
from temporalio.service import RPCError, RPCStatusCode
from whenever import Instant

from usage_monitor.client import (
    GraphQLClient,
    GraphQLQueryError,
    QueryExecutor,
    QueryTransportError,
    discover_datasets,
)
from usage_monitor.engine import current_billing_period
from usage_monitor.models import (
    CATEGORY_NAMES,
    CategoryCount,
    ConfigResponse,
    DatasetsResponse,
    ErrorResponse,
    HealthResponse,
    MetricInfo,
    MetricsResponse,
    MonitorSettings,
    NotificationOptions,
    NotificationResult,
    TrafficFilters,
    UsageMonitorInput,
    UsageResponse,
    WorkflowStatusResponse,
    WorkflowTriggerRequest,
    WorkflowTriggerResponse,
    ZoneDiscoveryResult,
    get_settings,
)
from usage_monitor.notifications import detect_provider, send_test_notification
from usage_monitor.registry import build_default_registry, enabled_metrics, resolve_metrics
from usage_monitor.service import run_usage_check
from usage_monitor.temporal import create_client
from usage_monitor.workflows import UsageMonitorWorkflow
from usage_monitor.zones import discover_zones, is_valid_zone_id

logger = logging.getLogger("usage_monitor.api")

WORKFLOW_ID_PATTERN = re.compile(r"[A-Za-z0-9_-]{1,128}")


def _now_iso() -> str:
    """Return current UTC time as ISO 8601 string."""
    return Instant.now().format_iso()


def _error(status_code: int, error: str, detail: str | None = None) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail=ErrorResponse(error=error, detail=detail).model_dump(),
    )


# =============================================================================
# DEPENDENCIES
# =============================================================================


def _settings(request: Request) -> MonitorSettings:
    return request.app.state.settings


def _executor(request: Request) -> QueryExecutor:
    executor = request.app.state.executor
    if executor is None:
        raise _error(503, "Query client unavailable")
    return executor


def _http_client(request: Request) -> httpx.AsyncClient | None:
    return request.app.state.http_client


async def _temporal_client(request: Request) -> Client:
    """Connect to Temporal on first use and keep the client on app state."""
    client = request.app.state.temporal_client
    if client is None:
        settings = request.app.state.settings
        try:
            client = await create_client(settings.temporal_address, settings.temporal_namespace)
        except (RuntimeError, RPCError) as e:
            logger.warning("Temporal connection to %s failed: %s", settings.temporal_address, e)
            raise _error(503, "Temporal unavailable", str(e)) from None
        request.app.state.temporal_client = client
    return client


def _require_api_key(
    settings: Annotated[MonitorSettings, Depends(_settings)],
    authorization: Annotated[str | None, Header()] = None,
    x_api_key: Annotated[str | None, Header()] = None,
) -> None:
    """Reject the request unless it carries the configured access key."""
    expected = settings.api_access_key
    if not expected:
        return

    provided = x_api_key
    if authorization and authorization.lower().startswith("bearer "):
        provided = authorization[len("bearer ") :].strip()
    if not provided or not hmac.compare_digest(provided.encode(), expected.encode()):
        raise _error(401, "Unauthorized", "Missing or invalid API key")


SettingsDep = Annotated[MonitorSettings, Depends(_settings)]
ExecutorDep = Annotated[QueryExecutor, Depends(_executor)]
HttpClientDep = Annotated[httpx.AsyncClient | None, Depends(_http_client)]
TemporalDep = Annotated[Client, Depends(_temporal_client)]


# =============================================================================
# /api ROUTES
# =============================================================================

router = APIRouter(prefix="/api", dependencies=[Depends(_require_api_key)])


@router.get("/usage")
async def get_usage(
    settings: SettingsDep,
    executor: ExecutorDep,
    http_client: HttpClientDep,
    zone_id: Annotated[str | None, Query(description="Only report this zone")] = None,
    eyeball_only: bool = False,
    exclude_blocked: bool = False,
    exclude_edge_workers: bool = False,
    include_disabled: bool = False,
) -> UsageResponse:
    """Query current usage for every configured metric."""
    if zone_id is not None and not is_valid_zone_id(zone_id):
        raise _error(400, "Invalid zone id", "Expected 32 hexadecimal characters")

    filters = TrafficFilters(
        eyeball_only=eyeball_only,
        exclude_blocked=exclude_blocked,
        exclude_edge_workers=exclude_edge_workers,
        zone_id=zone_id,
    )
    return await run_usage_check(
        settings,
        executor,
        filters,
        include_disabled=include_disabled,
        http_client=http_client,
    )


@router.get("/metrics")
async def get_metrics(settings: SettingsDep) -> MetricsResponse:
    """Metric catalog with effective contract limits."""
    runtimes = resolve_metrics(
        build_default_registry(), settings.contract, settings.configured_zone_tags
    )
    metrics = [
        MetricInfo(
            id=metric.id,
            name=metric.name,
            category=metric.category,
            description=metric.description,
            dataset=metric.dataset,
            aggregation=metric.aggregation,
            scope=metric.scope,
            time_filter=metric.time_filter,
            unit=metric.unit,
            limit=metric.limit,
            enabled=metric.enabled,
            unlimited=metric.unlimited,
            docs_url=metric.docs_url,
            note=metric.note,
        )
        for metric in runtimes
    ]
    return MetricsResponse(
        metrics=metrics,
        total=len(metrics),
        enabled=sum(1 for metric in metrics if metric.enabled),
    )


@router.get("/config")
async def get_config(settings: SettingsDep) -> ConfigResponse:
    """Non-secret view of the running configuration."""
    contract = settings.contract
    billing = contract.billing_period
    runtimes = resolve_metrics(
        build_default_registry(), contract, settings.configured_zone_tags
    )

    categories = [
        CategoryCount(
            category=category,
            display_name=display_name,
            enabled=sum(1 for m in runtimes if m.category == category and m.enabled),
            total=sum(1 for m in runtimes if m.category == category),
        )
        for category, display_name in CATEGORY_NAMES.items()
    ]

    provider = settings.notification_provider
    if provider is None and settings.webhook_url:
        detected = detect_provider(settings.webhook_url)
        provider = detected.name if detected is not None else None

    return ConfigResponse(
        alert_threshold_percent=contract.alert_threshold_percent,
        warning_threshold_percent=contract.warning_threshold_percent,
        billing_start_day=billing.start_day,
        billing_timezone=billing.timezone,
        billing_period=current_billing_period(billing.start_day, billing.timezone),
        zone_tags_configured=len(settings.configured_zone_tags),
        notification_provider=provider,
        categories=categories,
    )


@router.get("/zones")
async def get_zones(settings: SettingsDep, http_client: HttpClientDep) -> ZoneDiscoveryResult:
    """Active zones of the monitored account."""
    result = await discover_zones(settings.api_token, settings.account_id, client=http_client)
    if result.error:
        raise _error(502, "Zone discovery failed", result.error)
    return result


@router.post("/notifications/test")
async def post_test_notification(
    settings: SettingsDep, http_client: HttpClientDep
) -> NotificationResult:
    """Send a test notification to the configured webhook."""
    if not settings.webhook_url:
        raise _error(400, "No webhook configured", "Set USAGE_MONITOR_WEBHOOK_URL")

    contract = settings.contract
    enabled = enabled_metrics(build_default_registry(), contract, settings.configured_zone_tags)
    result = await send_test_notification(
        settings.webhook_url,
        NotificationOptions(
            alert_threshold=contract.alert_threshold_percent,
            warning_threshold=contract.warning_threshold_percent,
            monitored_count=len(enabled),
        ),
        provider_name=settings.notification_provider,
        client=http_client,
    )
    if not result.success:
        raise _error(502, "Notification failed", result.error)
    return result


@router.get("/datasets")
async def get_datasets(executor: ExecutorDep) -> DatasetsResponse:
    """Datasets the token can see, and which of them no metric reads yet."""
    try:
        available = await discover_datasets(executor)
    except (QueryTransportError, GraphQLQueryError) as e:
        raise _error(502, "Dataset discovery failed", str(e)) from None

    configured = sorted({d.dataset for d in build_default_registry().all_definitions()})
    found = sorted({name for names in available.values() for name in names})
    return DatasetsResponse(
        available=available,
        configured=configured,
        unconfigured=[name for name in found if name not in configured],
    )


# =============================================================================
# /api/workflow ROUTES
# =============================================================================


@router.post("/workflow/trigger")
async def trigger_workflow(
    settings: SettingsDep,
    temporal: TemporalDep,
    body: WorkflowTriggerRequest | None = None,
) -> WorkflowTriggerResponse:
    """Start one monitor run without waiting for it."""
    body = body or WorkflowTriggerRequest()
    workflow_id = f"usage-monitor-api-{uuid.uuid4().hex[:12]}"

    handle = await temporal.start_workflow(
        "UsageMonitorWorkflow",
        UsageMonitorInput(
            account_id=settings.account_id,
            zone_tags=settings.configured_zone_tags,
            contract=settings.contract,
            force_notify=body.force_notify,
            notify=body.notify,
            triggered_by="api",
        ),
        id=workflow_id,
        task_queue=settings.task_queue,
    )
    logger.info("Triggered %s on %s", handle.id, settings.task_queue)
    return WorkflowTriggerResponse(workflow_id=handle.id, run_id=handle.result_run_id)


@router.get("/workflow/{workflow_id}/status")
async def get_workflow_status(workflow_id: str, temporal: TemporalDep) -> WorkflowStatusResponse:
    """Execution status and current phase of one monitor run."""
    if not WORKFLOW_ID_PATTERN.fullmatch(workflow_id):
        raise _error(400, "Invalid workflow id", "Expected 1-128 letters, digits, '-' or '_'")

    handle = temporal.get_workflow_handle(workflow_id)
    try:
        description = await handle.describe()
    except RPCError as e:
        if e.status == RPCStatusCode.NOT_FOUND:
            raise _error(404, "Workflow not found", workflow_id) from None
        raise _error(502, "Temporal request failed", str(e)) from None

    phase = None
    try:
        phase = await handle.query(UsageMonitorWorkflow.status)
    except (RPCError, WorkflowQueryFailedError) as e:
        logger.warning("Status query for %s failed: %s", workflow_id, e)

    return WorkflowStatusResponse(
        workflow_id=workflow_id,
        status=description.status.name if description.status is not None else None,
        phase=phase,
    )


# =============================================================================
# FASTAPI APPLICATION
# =============================================================================


def create_app(
    settings: MonitorSettings | None = None,
    executor: QueryExecutor | None = None,
    http_client: httpx.AsyncClient | None = None,
    temporal_client: Client | None = None,
) -> FastAPI:
    """Build the API application.

    Args:
        settings: Settings to serve (default: loaded from the environment)
        executor: Query executor (default: a GraphQLClient opened at startup)
        http_client: Client for REST and webhook calls (default: one per call)
        temporal_client: Temporal client for workflow routes (default:
            connected on first use)
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Open the GraphQL client on startup unless one was injected."""
        owned = None
        if app.state.executor is None:
            owned = GraphQLClient(settings.api_token)
            app.state.executor = owned
        try:
            yield
        finally:
            if owned is not None:
                await owned.aclose()
                app.state.executor = None

    app = FastAPI(
        title="Usage Monitor API",
        description="On-demand usage checks against contract caps.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.executor = executor
    app.state.http_client = http_client
    app.state.temporal_client = temporal_client

    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]  # Starlette middleware typing
        allow_origins=settings.origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-API-Key"],
    )

    @app.get("/health")
    async def health() -> HealthResponse:
        """Liveness check."""
        return HealthResponse(timestamp=_now_iso())

    app.include_router(router)
    logger.info("Usage monitor API configured for account %s", settings.account_id)
    return app
