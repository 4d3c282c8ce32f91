from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
import logging

from dotenv import load_dotenv
from fastapi import FastAPI, APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from common.config import Settings, load_settings
from notifications import (
    NotificationDispatcher,
    RoutePoint,
    RouteQuery,
    TrafficDetailsFetcher,
    TrafficMessageGenerator,
    TrafficNotifierWorkflow,
)
from notifications.errors import (
    ConfigurationError,
    InputValidationError,
    PipelineStageError,
    ProviderDataError,
    TrafficNotifierError,
)
from providers import ProviderSet, load_providers

ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def build_workflow(settings: Settings, providers: Optional[ProviderSet] = None) -> TrafficNotifierWorkflow:
    """Construct providers and the workflow once; credential problems surface here."""
    if providers is None:
        providers = load_providers(settings)
    return TrafficNotifierWorkflow(
        fetcher=TrafficDetailsFetcher(providers.directions),
        generator=TrafficMessageGenerator(providers.messages),
        dispatcher=NotificationDispatcher(providers.transport),
        retry_policy=settings.retry_policy(),
        default_threshold_minutes=settings.delay_threshold_minutes,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = load_settings()
    providers = load_providers(settings)
    app.state.settings = settings
    app.state.workflow = build_workflow(settings, providers)
    logger.info(f"Traffic notifier ready (mode: {settings.mode})")
    yield
    await providers.aclose()


# Create the main app
app = FastAPI(lifespan=lifespan)
api_router = APIRouter(prefix="/api")

# ==================== Models ====================

class Location(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    address: Optional[str] = None


class TrafficNotifyRequest(BaseModel):
    origin: Location
    destination: Location
    departure_time: Optional[datetime] = None
    threshold_minutes: Optional[float] = Field(default=None, ge=0)
    run_id: Optional[str] = None


def _status_for(error: TrafficNotifierError) -> int:
    if isinstance(error, InputValidationError):
        return 422
    if isinstance(error, ConfigurationError):
        return 500
    if isinstance(error, ProviderDataError):
        return 502
    if isinstance(error, PipelineStageError):
        return 503
    return 500

# ==================== API Routes ====================

@api_router.get("/health")
async def health_check():
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}


@api_router.post("/traffic/notify")
async def notify_traffic_delay(body: TrafficNotifyRequest, request: Request):
    """Run the delay notification pipeline for one route."""
    workflow: TrafficNotifierWorkflow = request.app.state.workflow
    logger.info(
        f"Traffic notify request: {body.origin.address or (body.origin.lat, body.origin.lng)} -> "
        f"{body.destination.address or (body.destination.lat, body.destination.lng)}"
    )
    try:
        query = RouteQuery(
            origin=RoutePoint(body.origin.lat, body.origin.lng, body.origin.address),
            destination=RoutePoint(body.destination.lat, body.destination.lng, body.destination.address),
            departure_time=body.departure_time,
        )
        result = await workflow.run(query, body.threshold_minutes, run_id=body.run_id)
    except TrafficNotifierError as e:
        logger.error(f"Traffic notifier failed at stage {e.stage}: {e}")
        raise HTTPException(status_code=_status_for(e), detail=e.to_dict())
    return result.to_dict()


app.include_router(api_router)
