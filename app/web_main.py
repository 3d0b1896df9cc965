from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import ORJSONResponse
from pydantic import BaseModel

from app.config import AppSettings, load_settings
from app.example_policies import EXAMPLE_POLICIES
from app.visualizer_wiring import build_visualizer
from domain.errors import NoValidPoliciesError, PolicyDecodeError
from domain.services.visualize_policies import VisualizePolicies

logger = logging.getLogger(__name__)


class VisualizeRequest(BaseModel):
    text: str


@dataclass(frozen=True)
class VisualizerContext:
    settings: AppSettings
    visualizer: VisualizePolicies


def get_context(request: Request) -> VisualizerContext:
    return request.app.state.context


def create_app(settings: AppSettings) -> FastAPI:
    app = FastAPI(title=settings.visualizer.title)
    app.state.context = VisualizerContext(
        settings=settings,
        visualizer=build_visualizer(settings),
    )

    @app.get("/health")
    def health() -> ORJSONResponse:
        return ORJSONResponse({"status": "ok"})

    @app.get("/api/example")
    def api_example() -> ORJSONResponse:
        return ORJSONResponse({"text": EXAMPLE_POLICIES})

    @app.post("/api/visualize")
    def api_visualize(
        payload: VisualizeRequest,
        context: VisualizerContext = Depends(get_context),
    ) -> ORJSONResponse:
        limit = context.settings.visualizer.max_input_bytes
        if limit and len(payload.text.encode("utf-8")) > limit:
            raise HTTPException(status_code=413, detail=f"Input exceeds {limit} bytes")
        try:
            visualization = context.visualizer.visualize(payload.text)
        except PolicyDecodeError as exc:
            logger.warning("Policy input could not be decoded: %s", exc)
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except NoValidPoliciesError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return ORJSONResponse(visualization.to_dict())

    return app


app = create_app(load_settings())
