from fastapi import APIRouter, HTTPException
from fastapi.responses import PlainTextResponse

from ticketgate.dependencies.tickets import MetricsDep, RegistryDep
from ticketgate.metrics.exporters import PROMETHEUS_CONTENT_TYPE, PrometheusExporter

router = APIRouter(tags=["health"])


@router.get("/ping", summary="Public health probe")
async def ping() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/ping/ready", summary="Registry readiness probe")
async def ready(registry: RegistryDep) -> dict[str, str]:
    if not await registry.ping():
        raise HTTPException(status_code=503, detail="Ticket registry is unavailable")
    return {"status": "ready"}


@router.get("/metrics", response_class=PlainTextResponse, summary="Prometheus metrics")
async def metrics(registry: MetricsDep) -> PlainTextResponse:
    payload = PrometheusExporter(registry).build_payload()
    return PlainTextResponse(payload, media_type=PROMETHEUS_CONTENT_TYPE)
