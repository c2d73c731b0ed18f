import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from share_audit.core.settings import configure_logging, load_settings
from share_audit.infrastructure import GeminiReportGenerator, configure_report_generator
from share_audit.routes import audits, export, report

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    settings = load_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Smartsheet Workspace Share Audit API", version="0.1.0")

    if settings.gemini_api_key:
        configure_report_generator(
            GeminiReportGenerator(api_key=settings.gemini_api_key, model=settings.gemini_model)
        )
    else:
        logger.info("GOOGLE_API_KEY not set; report generation disabled")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(audits.router, prefix="/api")
    app.include_router(export.router, prefix="/api")
    app.include_router(report.router, prefix="/api")

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Provide a lightweight landing page for container checks."""
        return JSONResponse(
            {
                "message": "Smartsheet Workspace Share Audit API",
                "docs": "/docs",
                "health": "/api/audits",
            }
        )

    return app


app = create_app()
