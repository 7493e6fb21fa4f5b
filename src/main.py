from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.application.dtos.common_dto import HealthResponse, RootResponse
from src.application.services.session_manager import SessionManager
from src.infrastructure.api.dependencies import build_session_manager
from src.infrastructure.api.middlewares import add_default_middlewares
from src.infrastructure.api.routes.session_routes import router as session_router
from src.infrastructure.config import Settings
from src.infrastructure.database.postgres_client import close_postgres_client
from src.infrastructure.logging import configure_logging


def create_app(settings: Settings | None = None, manager: SessionManager | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level, settings.console_logging)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        session_manager = manager or await build_session_manager(settings)
        app.state.session_manager = session_manager
        try:
            async with session_manager:
                yield
        finally:
            app.state.session_manager = None
            if settings.use_local_db:
                close_postgres_client()

    app = FastAPI(
        title="Gym League Session Service",
        version="0.1.0",
        description="""
        ## Gym League Session Service

        Session and identity layer of the gym-league membership app.

        ### Features
        - **Session restore**: demo sessions from local storage, provider
          sessions from Supabase Auth
        - **Login / Sign-up / Logout** against Supabase or the demo catalog
        - **Profiles**: extended account profile joined with its gym

        ### Demo mode
        Without `SUPABASE_URL` and `SUPABASE_ANON_KEY` the service runs on the
        demo catalog (`admin@demo.com`, `coach@demo.com`, `gymnast@demo.com`)
        and creates sign-ups locally.

        ### Error Responses
        - **401 Unauthorized**: credentials rejected
        - **403 Forbidden**: profile write denied by the access policy
        - **409 Conflict**: profile row could not be created
        - **422 Unprocessable Entity**: validation error in request body
        """,
        lifespan=lifespan,
    )
    add_default_middlewares(app, settings.env)

    @app.get(
        "/",
        response_model=RootResponse,
        summary="API Root",
        description="Get basic information about the session service",
    )
    def root():
        """Get API root information."""
        return {
            "status": "ok",
            "service": "gym-league-session",
            "version": app.version,
            "provider_configured": settings.provider_configured,
        }

    @app.get(
        "/health",
        response_model=HealthResponse,
        summary="Health Check",
        description="Check if the service is running",
    )
    def health():
        """Check service health status."""
        return {"status": "healthy"}

    app.include_router(session_router)
    return app


app = create_app()
