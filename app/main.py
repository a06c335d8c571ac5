"""
FastAPI backend: user intents of the weather screen in, view-model state out.
Each endpoint maps to one view-model intent; suggestion searches run in the background.
"""
import asyncio
import logging
import os
import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from viewmodel.view_model import PERMISSION_DENIED_MESSAGE, LocationOutcome, close_view_model, get_view_model

log = logging.getLogger(__name__)
logging.basicConfig(level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO))

logging.getLogger("httpx").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the view-model on startup; cancel pending work and close the HTTP client on shutdown."""
    get_view_model()
    yield
    await close_view_model()


app = FastAPI(title="weather-viewmodel", lifespan=lifespan)
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])


class QueryRequest(BaseModel):
    query: str = Field(..., max_length=200)


class CityRequest(BaseModel):
    city: str = Field(..., max_length=200)


class LocationRequest(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)


class SuggestionRequest(BaseModel):
    index: int = Field(..., ge=0)


class CurrentLocationRequest(BaseModel):
    permission_granted: bool


async def _await_request(task: asyncio.Task) -> None:
    """Wait for a weather request; a disconnecting caller must not cancel the request itself."""
    await asyncio.shield(task)


def _state_payload() -> dict:
    vm = get_view_model()
    return {
        "result": vm.result_state.value.to_dict(),
        "suggestions": [s.to_dict() for s in vm.suggestions.value],
    }


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    rid = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = rid
    response = await call_next(request)
    response.headers["x-request-id"] = rid
    return response


@app.get("/health")
async def health():
    """Basic health check."""
    return {"status": "ok"}


@app.get("/state")
async def state():
    return _state_payload()


@app.post("/search/query", status_code=202)
async def search_query(req: QueryRequest):
    """Schedule the debounced suggestion search (short queries clear suggestions)."""
    get_view_model().on_query_changed(req.query)
    return {"accepted": True}


@app.delete("/search/suggestions", status_code=204)
async def clear_suggestions():
    get_view_model().clear_suggestions()
    return Response(status_code=204)


@app.post("/weather/city")
async def weather_by_city(req: CityRequest):
    task = get_view_model().on_search_click(req.city)
    if task is None:
        raise HTTPException(status_code=400, detail="city must not be blank")
    await _await_request(task)
    return _state_payload()


@app.post("/weather/location")
async def weather_by_location(req: LocationRequest):
    await _await_request(get_view_model().fetch_by_location(req.lat, req.lon))
    return _state_payload()


@app.post("/weather/suggestion")
async def weather_by_suggestion(req: SuggestionRequest):
    vm = get_view_model()
    suggestions = vm.suggestions.value
    if req.index >= len(suggestions):
        raise HTTPException(status_code=404, detail="no suggestion at that index")
    await _await_request(vm.on_suggestion_click(suggestions[req.index]))
    return _state_payload()


@app.post("/weather/current-location")
async def weather_by_current_location(req: CurrentLocationRequest):
    outcome, task = await get_view_model().on_location_click(req.permission_granted)
    if task is not None:
        await _await_request(task)
    message: Optional[str] = None
    if outcome is LocationOutcome.PERMISSION_REQUIRED:
        message = PERMISSION_DENIED_MESSAGE
    log.info("current_location", extra={"outcome": outcome.value})
    return {"outcome": outcome.value, "message": message, "state": _state_payload()}


if __name__ == "__main__":
    import uvicorn

    from app.config import get_settings

    settings = get_settings()
    uvicorn.run("app.main:app", host=settings.api_host, port=settings.api_port, log_level=settings.log_level.lower())
