"""
FastAPI Backend for FlickPick

REST endpoints for movie recommendations, picks and history, mood streaks,
persona chat and setup-question tracking. All stateful services are built
once in the lifespan, stored on `app.state` and handed to routes through
dependencies.
"""

import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Dict, List, Literal, Optional, Any

import structlog
from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from .. import __version__
from ..models.config_models import SystemConfig
from ..models.preference_models import MovieHistoryEntry
from ..services.chat_service import ChatService
from ..services.conversation_memory import ConversationMemoryStore
from ..services.conversation_state import (
    analyze_conversation,
    next_question,
    extract_preferences,
)
from ..services.fallback_catalog import fallback_movies
from ..services.mood_streak import MoodStreakTracker
from ..services.movie_aggregator import ParallelAggregator
from ..services.preference_store import PreferenceStore, InMemoryPreferenceStore
from ..services.query_planner import UpstreamQueryPlanner, QueryFilters
from ..services.recommendation_service import RecommendationService
from ..utils.logging_config import setup_logging
from .client_factory import APIClientFactory
from .logging_middleware import LoggingMiddleware

logger = structlog.get_logger(__name__)


@dataclass
class AppServices:
    """Service instances shared by all requests."""
    config: SystemConfig
    preference_store: PreferenceStore
    memory: ConversationMemoryStore
    mood_tracker: MoodStreakTracker
    chat: ChatService
    recommendations: RecommendationService
    clients: List[Any]
    client_factory: APIClientFactory


def build_services(
    config: SystemConfig,
    preference_store: Optional[PreferenceStore] = None,
    catalog_client=None,
    llm_client=None
) -> AppServices:
    """
    Wire the service graph.

    Clients not passed in are created from config; a missing API key leaves
    the matching client out and the services fall back.
    """
    factory = APIClientFactory(config)
    owned_clients = []
    if catalog_client is None:
        catalog_client = factory.create_tmdb_client()
        if catalog_client is not None:
            owned_clients.append(catalog_client)
    if llm_client is None:
        llm_client = factory.create_groq_client()
        if llm_client is not None:
            owned_clients.append(llm_client)

    preference_store = preference_store or InMemoryPreferenceStore()
    memory = ConversationMemoryStore(max_turns=config.memory_max_turns)

    aggregator = None
    if catalog_client is not None:
        aggregator = ParallelAggregator(
            catalog_client,
            cap=config.aggregation_cap,
            timeout=config.upstream_timeout_seconds
        )

    return AppServices(
        config=config,
        preference_store=preference_store,
        memory=memory,
        mood_tracker=MoodStreakTracker(preference_store),
        chat=ChatService(memory, preference_store, llm_client=llm_client, config=config),
        recommendations=RecommendationService(
            planner=UpstreamQueryPlanner(regional_query_count=config.regional_query_count),
            preference_store=preference_store,
            aggregator=aggregator,
            trailer_client=catalog_client
        ),
        clients=owned_clients,
        client_factory=factory,
    )


def create_app(
    config: Optional[SystemConfig] = None,
    preference_store: Optional[PreferenceStore] = None,
    catalog_client=None,
    llm_client=None,
    configure_logging: bool = True
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: System configuration (read from the environment if omitted)
        preference_store: Persistence adapter (in-memory if omitted)
        catalog_client: Catalog client override, mainly for tests
        llm_client: Chat client override, mainly for tests
        configure_logging: Whether the lifespan installs logging handlers
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        load_dotenv()
        system_config = config or SystemConfig.from_env()
        if configure_logging:
            setup_logging(log_dir=system_config.log_dir, log_level=system_config.log_level)

        logger.info("Initializing FlickPick services...")
        services = build_services(
            system_config,
            preference_store=preference_store,
            catalog_client=catalog_client,
            llm_client=llm_client
        )
        for client in services.clients:
            await client.open()
        app.state.services = services
        logger.info(
            "FlickPick services initialized",
            catalog_enabled=services.recommendations.aggregator is not None,
            chat_enabled=services.chat.is_available()
        )

        yield

        logger.info("Shutting down FlickPick services...")
        for client in services.clients:
            await client.close()

    app = FastAPI(
        title="FlickPick API",
        description="Movie recommendations with a conversational movie buddy",
        version=__version__,
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware, exclude_paths=["/health", "/docs", "/openapi.json"])

    _register_routes(app)
    return app


# Request/Response Models
class PickRequest(BaseModel):
    """Request model for picking a movie."""
    movie_id: int = Field(..., description="Catalog id of the picked movie")
    movie_title: str = Field(..., min_length=1)
    movie_poster: Optional[str] = None
    genre: Optional[str] = None
    mood: Optional[str] = None


class MoodRequest(BaseModel):
    mood: str = Field(..., min_length=1, description="Selected mood")


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, description="User message")


class TranscriptTurn(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str = ""


class ConversationRequest(BaseModel):
    """Transcript to analyze for setup-question progress."""
    messages: List[TranscriptTurn] = Field(default_factory=list)
    mood: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    timestamp: float
    version: str
    components: Dict[str, str]
    rate_limiters: Dict[str, Dict[str, Any]] = Field(default_factory=dict)


# Dependencies
def get_services(request: Request) -> AppServices:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return services


def get_user_id(
    authorization: Optional[str] = Header(None),
    x_user_id: Optional[str] = Header(None)
) -> str:
    """The bearer token, or the X-User-Id header, identifies the user."""
    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() == "bearer" and token.strip():
            return token.strip()
    if x_user_id and x_user_id.strip():
        return x_user_id.strip()
    raise HTTPException(status_code=401, detail="No token, authorization denied")


def _history_to_dict(entry: MovieHistoryEntry) -> Dict[str, Any]:
    data = entry.to_dict()
    data.pop("user_id")
    return data


def _register_routes(app: FastAPI) -> None:

    @app.get("/health", response_model=HealthResponse)
    async def health_check(request: Request):
        """Health check endpoint."""
        services = getattr(request.app.state, "services", None)
        components = {"service": "inactive"}
        rate_limiters = {}
        if services is not None:
            rate_limiters = services.client_factory.get_rate_limiter_stats()
            components = {
                "service": "active",
                "catalog": "configured" if services.recommendations.aggregator else "fallback",
                "chat": "configured" if services.chat.is_available() else "fallback",
            }
        return HealthResponse(
            status="healthy",
            timestamp=time.time(),
            version=__version__,
            components=components,
            rate_limiters=rate_limiters
        )

    @app.get("/movies/recommendations")
    async def get_recommendations(
        genre: Optional[str] = None,
        mood: Optional[str] = None,
        length: Optional[str] = None,
        rating: Optional[str] = None,
        user_id: str = Depends(get_user_id),
        services: AppServices = Depends(get_services)
    ):
        """
        Get movie recommendations.

        Unset filters come from the user's saved preferences. The response
        is never empty: failed or empty aggregation is replaced by the
        curated list for the genre.
        """
        response = await services.recommendations.get_recommendations(
            user_id, QueryFilters(genre=genre, mood=mood, length=length, rating=rating)
        )
        return {
            "movies": [movie.to_dict() for movie in response.movies],
            "count": len(response.movies),
            "source": response.source,
            "outcome": response.outcome.value if response.outcome else None,
            "filters": {
                "genre": response.filters.genre,
                "mood": response.filters.mood,
                "length": response.filters.length,
                "rating": response.filters.rating,
            },
        }

    @app.get("/movies/fallback/{genre}")
    async def get_fallback(genre: str):
        movies = fallback_movies(genre)
        return {"movies": [movie.to_dict() for movie in movies], "count": len(movies)}

    @app.post("/movies/pick")
    async def pick_movie(
        request: PickRequest,
        user_id: str = Depends(get_user_id),
        services: AppServices = Depends(get_services)
    ):
        hot_take = await services.recommendations.pick_movie(
            user_id,
            movie_id=request.movie_id,
            movie_title=request.movie_title,
            movie_poster=request.movie_poster,
            genre=request.genre,
            mood=request.mood
        )
        # Keep an ongoing chat aware of the new pick
        await services.chat.refresh_context(user_id)
        return {"success": True, "hot_take": hot_take}

    @app.get("/movies/history")
    async def get_history(
        user_id: str = Depends(get_user_id),
        services: AppServices = Depends(get_services)
    ):
        history = await services.recommendations.history(user_id)
        return {"history": [_history_to_dict(entry) for entry in history]}

    @app.delete("/movies/history")
    async def clear_history(
        user_id: str = Depends(get_user_id),
        services: AppServices = Depends(get_services)
    ):
        deleted = await services.recommendations.clear_history(user_id)
        return {"success": True, "deleted": deleted}

    @app.get("/movies/stats")
    async def get_stats(
        user_id: str = Depends(get_user_id),
        services: AppServices = Depends(get_services)
    ):
        return await services.recommendations.stats(user_id)

    @app.get("/movies/trailer/{movie_id}", dependencies=[Depends(get_user_id)])
    async def get_trailer(
        movie_id: int,
        services: AppServices = Depends(get_services)
    ):
        return {"trailer_url": await services.recommendations.trailer(movie_id)}

    @app.post("/mood/select")
    async def select_mood(
        request: MoodRequest,
        user_id: str = Depends(get_user_id),
        services: AppServices = Depends(get_services)
    ):
        try:
            update = await services.mood_tracker.update_mood_streak(user_id, request.mood)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return update.to_dict()

    @app.post("/chat/message")
    async def chat_message(
        request: ChatRequest,
        user_id: str = Depends(get_user_id),
        services: AppServices = Depends(get_services)
    ):
        reply = await services.chat.chat(user_id, request.message)
        return {"response": reply}

    @app.post("/chat/refresh")
    async def chat_refresh(
        user_id: str = Depends(get_user_id),
        services: AppServices = Depends(get_services)
    ):
        refreshed = await services.chat.refresh_context(user_id)
        return {"success": refreshed}

    @app.post("/chat/clear")
    async def chat_clear(
        user_id: str = Depends(get_user_id),
        services: AppServices = Depends(get_services)
    ):
        await services.chat.clear(user_id)
        return {"success": True}

    @app.post("/conversation/analyze", dependencies=[Depends(get_user_id)])
    async def analyze(request: ConversationRequest):
        """Setup-question progress for a transcript, and what to ask next."""
        state = analyze_conversation([turn.model_dump() for turn in request.messages])
        return {
            "state": state.to_dict(),
            "next_question": next_question(state, mood=request.mood),
            "preferences": extract_preferences(state),
        }


app = create_app()
