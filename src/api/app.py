"""FastAPI app exposing guideline administration and message endpoints."""

import os

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from .schemas import GuidelineListResponse, GuidelineModel, HealthResponse, MessageRequest, MessageResponse
from .service import BackendNotConfiguredError, CascadeAPIService


def _allowed_origins() -> list[str]:
    raw = os.getenv(
        "CASCADE_API_ALLOW_ORIGINS",
        "http://localhost:8000,http://127.0.0.1:8000,http://localhost:5173,http://127.0.0.1:5173",
    )
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def create_app(service: CascadeAPIService | None = None) -> FastAPI:
    app = FastAPI(title="Guideline Cascade API", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_allowed_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.cascade_service = service

    def get_service() -> CascadeAPIService:
        if app.state.cascade_service is None:
            app.state.cascade_service = CascadeAPIService()
        return app.state.cascade_service

    @app.get("/health", response_model=HealthResponse)
    def health(cascade_service: CascadeAPIService = Depends(get_service)) -> HealthResponse:
        return cascade_service.health()

    @app.get("/guidelines", response_model=GuidelineListResponse)
    def list_guidelines(cascade_service: CascadeAPIService = Depends(get_service)) -> GuidelineListResponse:
        return cascade_service.list_guidelines()

    @app.post("/guidelines", response_model=GuidelineListResponse)
    def add_guideline(
        payload: GuidelineModel,
        cascade_service: CascadeAPIService = Depends(get_service),
    ) -> GuidelineListResponse:
        return cascade_service.add_guideline(payload)

    @app.post("/messages", response_model=MessageResponse)
    def messages(
        payload: MessageRequest,
        cascade_service: CascadeAPIService = Depends(get_service),
    ) -> MessageResponse:
        try:
            return cascade_service.handle_message(payload)
        except BackendNotConfiguredError as exc:
            raise HTTPException(status_code=503, detail=f"Model backend not configured: {exc}") from exc
        except Exception as exc:
            # Avoid leaking internal error details to clients.
            raise HTTPException(status_code=500, detail="Internal server error.") from exc

    return app


app = create_app()
