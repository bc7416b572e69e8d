import uvicorn
from fastapi import FastAPI

from brainbolt.api.errors import install_error_handlers
from brainbolt.api.routes.health import router as health_router
from brainbolt.api.routes.internal_questions import router as internal_questions_router
from brainbolt.api.routes.leaderboard import router as leaderboard_router
from brainbolt.api.routes.quiz import router as quiz_router
from brainbolt.core.config import get_settings
from brainbolt.core.logging import configure_logging


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="BrainBolt Adaptive Quiz API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    install_error_handlers(app)
    app.include_router(health_router)
    app.include_router(quiz_router)
    app.include_router(leaderboard_router)
    app.include_router(internal_questions_router)
    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "brainbolt.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_env == "dev",
    )


if __name__ == "__main__":
    run()
