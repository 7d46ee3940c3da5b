import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from amethyst import analytics_router, gemini_router
from amethyst.analytics import AnalyticsService
from amethyst.analytics_store import AnalyticsStore, create_store
from amethyst.composer import ResponseComposer
from amethyst.config import Settings, get_settings
from amethyst.engine import ChatbotEngine
from amethyst.gemini import GeminiAI
from amethyst.knowledge import build_knowledge_base
from amethyst.recorder import AnalyticsRecorder, HttpAnalyticsRecorder, LocalAnalyticsRecorder
from amethyst.router import router

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    *,
    gemini=None,
    store: Optional[AnalyticsStore] = None,
    recorder: Optional[AnalyticsRecorder] = None,
) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level)

    app = FastAPI(
        title="Amethyst Kombucha Chatbot API",
        description="Customer-support chatbot for Amethyst Kombucha with conversation analytics",
        version="1.0.0",
    )

    # Enable CORS for all origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    knowledge = build_knowledge_base()
    composer = ResponseComposer(knowledge)
    gemini = gemini if gemini is not None else GeminiAI(settings, knowledge)
    analytics = AnalyticsService(store if store is not None else create_store(
        settings.analytics_backend, settings.analytics_db_path
    ))
    if recorder is None:
        if settings.analytics_url:
            recorder = HttpAnalyticsRecorder(settings.analytics_url, settings.analytics_timeout)
        else:
            recorder = LocalAnalyticsRecorder(analytics)

    app.state.settings = settings
    app.state.knowledge = knowledge
    app.state.composer = composer
    app.state.gemini = gemini
    app.state.engine = ChatbotEngine(composer, gemini=gemini)
    app.state.analytics = analytics
    app.state.recorder = recorder

    # Include routers
    app.include_router(router, prefix="/chatbot", tags=["Chat"])
    app.include_router(analytics_router.router, prefix="/chatbot/analytics", tags=["Analytics"])
    app.include_router(gemini_router.router, prefix="/gemini", tags=["Gemini"])

    # Health check endpoints
    @app.get("/")
    async def root():
        return {"message": "Amethyst Kombucha Chatbot API is running!", "status": "healthy"}

    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "geminiAvailable": app.state.gemini.is_available(),
            "analyticsBackend": settings.analytics_backend,
        }

    logger.info(f"Chatbot API ready (gemini available: {gemini.is_available()})")
    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=True  # Enable auto-reload for development
    )
