"""
Recommendation Service

Orchestrates a recommendation request: resolves filters against the user's
saved defaults, plans the catalog queries, aggregates them, and substitutes
the curated fallback whenever aggregation comes back empty. Also records
picks and serves history and stats.
"""

import random
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Any

import structlog

from ..models.movie_models import MovieCandidate, AggregationOutcome
from ..models.preference_models import UserPreferences, MovieHistoryEntry
from .fallback_catalog import fallback_movies, DEFAULT_GENRE
from .movie_aggregator import ParallelAggregator
from .preference_store import PreferenceStore
from .query_planner import UpstreamQueryPlanner, QueryFilters

logger = structlog.get_logger(__name__)

HOT_TAKES = (
    "Solid choice. Criterion Collection approved 🎬",
    "A cultured pick. Scorsese would be proud 🎥",
    "Classic. Roger Ebert gives it two thumbs up 👍👍",
    "Bold move. Tarantino-level taste detected 🔥",
    "Immaculate vibes. Kubrick energy 🧠",
)

SOURCE_CATALOG = "tmdb"
SOURCE_FALLBACK = "fallback"


@dataclass
class RecommendationResponse:
    """Movies for one request and where they came from."""
    movies: List[MovieCandidate]
    source: str
    filters: QueryFilters
    outcome: Optional[AggregationOutcome] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class RecommendationService:
    """
    Recommendation orchestration.

    `aggregator` is None when TMDB is not configured; every request is then
    served from the curated fallback.
    """

    def __init__(
        self,
        planner: UpstreamQueryPlanner,
        preference_store: PreferenceStore,
        aggregator: Optional[ParallelAggregator] = None,
        trailer_client=None,
        rng: Optional[random.Random] = None
    ):
        self.planner = planner
        self.preference_store = preference_store
        self.aggregator = aggregator
        self.trailer_client = trailer_client
        self.rng = rng or random.Random()
        self.logger = logger.bind(service="RecommendationService")

    async def resolve_filters(self, user_id, filters: QueryFilters) -> QueryFilters:
        """
        Fill missing genre, length and rating from saved preferences.

        A selected mood stands in for the genre, so the saved genre default
        only applies to requests without one.
        """
        if (filters.genre or filters.mood) and filters.length and filters.rating:
            return filters
        prefs = await self.preference_store.get_preferences(str(user_id))
        genre = filters.genre
        if not genre and not filters.mood:
            genre = prefs.favorite_genres[0] if prefs and prefs.favorite_genres else DEFAULT_GENRE
        return QueryFilters(
            genre=genre,
            mood=filters.mood,
            length=filters.length or (prefs.avg_movie_length if prefs else "any"),
            rating=filters.rating or (prefs.age_rating if prefs else "any"),
        )

    async def get_recommendations(self, user_id, filters: Optional[QueryFilters] = None) -> RecommendationResponse:
        """
        Movies for a request; never empty.

        An empty aggregation (all queries failed, or no usable results) is
        always replaced by the curated list for the resolved genre.
        """
        resolved = await self.resolve_filters(user_id, filters or QueryFilters())
        self.logger.info(
            "Getting recommendations",
            user_id=str(user_id),
            genre=resolved.genre,
            mood=resolved.mood,
            length=resolved.length,
            rating=resolved.rating
        )

        if self.aggregator is None:
            self.logger.warning("Catalog not configured, serving curated fallback")
            return RecommendationResponse(
                movies=fallback_movies(resolved.genre),
                source=SOURCE_FALLBACK,
                filters=resolved,
                metadata={"reason": "catalog_not_configured"}
            )

        specs = self.planner.plan_queries(resolved)
        try:
            result = await self.aggregator.aggregate(specs)
        except Exception as e:
            self.logger.error(
                "Aggregation raised, serving curated fallback",
                error=str(e),
                error_type=type(e).__name__
            )
            return RecommendationResponse(
                movies=fallback_movies(resolved.genre),
                source=SOURCE_FALLBACK,
                filters=resolved,
                outcome=AggregationOutcome.ALL_FAILED,
                metadata={"reason": "aggregation_error"}
            )

        if result.is_empty:
            self.logger.warning(
                "Aggregation empty, serving curated fallback",
                outcome=result.outcome.value,
                failed=result.failed,
                requested=result.requested
            )
            return RecommendationResponse(
                movies=fallback_movies(resolved.genre),
                source=SOURCE_FALLBACK,
                filters=resolved,
                outcome=result.outcome,
                metadata={"reason": result.outcome.value, "failed_queries": result.failed}
            )

        return RecommendationResponse(
            movies=result.movies,
            source=SOURCE_CATALOG,
            filters=resolved,
            outcome=result.outcome,
            metadata={
                "requested_queries": result.requested,
                "failed_queries": result.failed,
                "unique_movies": result.unique_count,
            }
        )

    async def pick_movie(
        self,
        user_id,
        movie_id: int,
        movie_title: str,
        movie_poster: Optional[str] = None,
        genre: Optional[str] = None,
        mood: Optional[str] = None
    ) -> str:
        """
        Record a pick, remember its genre as a favourite and return a hot take.

        Raises:
            ValueError: If movie id or title is missing
        """
        if movie_id is None or not movie_title:
            raise ValueError("movie_id and movie_title are required")

        key = str(user_id)
        await self.preference_store.add_history(MovieHistoryEntry(
            user_id=key,
            movie_id=movie_id,
            movie_title=movie_title,
            movie_poster=movie_poster,
            genre=genre,
            mood=mood
        ))

        prefs = await self.preference_store.get_preferences(key)
        if prefs is None:
            await self.preference_store.save_preferences(
                UserPreferences(user_id=key, favorite_genres=[genre] if genre else [])
            )
        elif genre and genre not in prefs.favorite_genres:
            prefs.favorite_genres.append(genre)
            prefs.updated_at = datetime.utcnow()
            await self.preference_store.save_preferences(prefs)

        self.logger.info("Movie picked", user_id=key, movie_id=movie_id, genre=genre)
        return self.rng.choice(HOT_TAKES)

    async def history(self, user_id, limit: int = 5) -> List[MovieHistoryEntry]:
        return await self.preference_store.recent_history(str(user_id), limit=limit)

    async def clear_history(self, user_id) -> int:
        return await self.preference_store.clear_history(str(user_id))

    async def stats(self, user_id) -> Dict[str, Any]:
        """Dashboard stats: total picks, current streak, favourite genres, new user."""
        key = str(user_id)
        prefs = await self.preference_store.get_preferences(key)
        total = await self.preference_store.count_history(key)
        return {
            "total_movies_picked": total,
            "current_streak": prefs.mood_streak.to_dict() if prefs else None,
            "favorite_genres": list(prefs.favorite_genres) if prefs else [],
            "is_new_user": total == 0,
        }

    async def trailer(self, movie_id: int) -> Optional[str]:
        if self.trailer_client is None:
            return None
        return await self.trailer_client.get_trailer_url(movie_id)
