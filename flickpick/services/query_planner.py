"""
Upstream Query Planner

Builds the set of TMDB discover queries used for one recommendation request.
Queries are partitioned into era, quality and regional buckets so the merged
pool spans decades, rating tiers and non-English catalogs. Each query draws
its page at random from its bucket's range, so repeated requests vary.

Pure: no I/O. Pass a seeded `random.Random` for deterministic plans.
"""

import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any, Tuple

import structlog

from ..models.movie_models import QuerySpec

logger = structlog.get_logger(__name__)

# TMDB genre ids
GENRE_MAP: Dict[str, int] = {
    "action": 28,
    "adventure": 12,
    "animation": 16,
    "comedy": 35,
    "crime": 80,
    "documentary": 99,
    "drama": 18,
    "family": 10751,
    "fantasy": 14,
    "history": 36,
    "horror": 27,
    "music": 10402,
    "mystery": 9648,
    "romance": 10749,
    "science fiction": 878,
    "sci-fi": 878,
    "scifi": 878,
    "thriller": 53,
    "war": 10752,
    "western": 37,
}

MOOD_TO_GENRES: Dict[str, Tuple[int, ...]] = {
    "emotional": (18, 10749),   # Drama, Romance
    "fun": (35, 12),            # Comedy, Adventure
    "chill": (35, 10751),       # Comedy, Family
    "thrilling": (53, 27),      # Thriller, Horror
    "dark": (27, 80),           # Horror, Crime
    "energetic": (28, 12),      # Action, Adventure
    "romantic": (10749, 35),    # Romance, Comedy
    "deep": (18, 99),           # Drama, Documentary
    "surprise": (12, 14),       # Adventure, Fantasy
}

SHORT_RUNTIME_MAX = 100
LONG_RUNTIME_MIN = 140

REGIONAL_LANGUAGES = "hi|kn|te|ta|ml"


@dataclass(frozen=True)
class QueryBucket:
    """A named partition of the catalog."""
    name: str
    count: int
    max_page: int
    params: Dict[str, Any] = field(default_factory=dict)


ERA_AND_QUALITY_BUCKETS: Tuple[QueryBucket, ...] = (
    QueryBucket("classics", 3, 50, {
        "primary_release_date.lte": "1990-12-31",
        "vote_average.gte": 6.5,
    }),
    QueryBucket("golden_era", 3, 100, {
        "primary_release_date.gte": "1990-01-01",
        "primary_release_date.lte": "2010-12-31",
        "vote_average.gte": 6.0,
    }),
    QueryBucket("modern", 3, 200, {
        "primary_release_date.gte": "2011-01-01",
        "primary_release_date.lte": "2020-12-31",
        "vote_average.gte": 6.5,
    }),
    QueryBucket("recent", 3, 100, {
        "primary_release_date.gte": "2021-01-01",
        "vote_average.gte": 6.0,
    }),
    QueryBucket("high_rated", 2, 150, {
        "vote_average.gte": 7.5,
        "vote_count.gte": 500,
    }),
    QueryBucket("hidden_gems", 2, 300, {
        "vote_average.gte": 6.5,
        "vote_count.gte": 100,
        "vote_count.lte": 1000,
    }),
)

REGIONAL_BUCKET_PARAMS: Dict[str, Any] = {
    "with_original_language": REGIONAL_LANGUAGES,
    "primary_release_date.gte": "2000-01-01",
    "vote_average.gte": 5.5,
}
REGIONAL_MAX_PAGE = 50


@dataclass
class QueryFilters:
    """User-facing filters for one recommendation request."""
    genre: Optional[str] = None
    mood: Optional[str] = None
    length: Optional[str] = None
    rating: Optional[str] = None


def resolve_genre_ids(genre: Optional[str] = None, mood: Optional[str] = None) -> List[int]:
    """
    Resolve TMDB genre ids.

    An explicit, known genre wins; otherwise the mood's genre set is used.
    Unknown or missing values resolve to no genre filter.
    """
    if genre:
        genre_id = GENRE_MAP.get(genre.strip().lower())
        if genre_id is not None:
            return [genre_id]
    if mood:
        return list(MOOD_TO_GENRES.get(mood.strip().lower(), ()))
    return []


def runtime_bounds(length: Optional[str]) -> Dict[str, int]:
    """Map a free-text length hint to runtime bounds in minutes."""
    if not length:
        return {}
    hint = length.lower()
    if "short" in hint or "quick" in hint:
        return {"with_runtime.lte": SHORT_RUNTIME_MAX}
    if "long" in hint or "epic" in hint:
        return {"with_runtime.gte": LONG_RUNTIME_MIN}
    return {}


def include_adult(rating: Optional[str]) -> bool:
    """
    Map a rating hint to the adult-content flag.

    Only "mature" enables adult results; certification levels (PG, teen)
    are not filtered.
    """
    return bool(rating) and rating.strip().lower() == "mature"


class UpstreamQueryPlanner:
    """
    Builds the ordered QuerySpec list for a recommendation request.

    The six era/quality buckets always contribute 16 queries; the regional
    bucket adds `regional_query_count` more.
    """

    def __init__(self, regional_query_count: int = 15, rng: Optional[random.Random] = None):
        if regional_query_count < 0:
            raise ValueError("regional_query_count must be >= 0")
        self.regional_query_count = regional_query_count
        self.rng = rng or random.Random()
        self.logger = logger.bind(component="UpstreamQueryPlanner")

    @property
    def buckets(self) -> Tuple[QueryBucket, ...]:
        regional = QueryBucket(
            "regional", self.regional_query_count, REGIONAL_MAX_PAGE, REGIONAL_BUCKET_PARAMS
        )
        return ERA_AND_QUALITY_BUCKETS + (regional,)

    def base_params(self, filters: QueryFilters) -> Dict[str, Any]:
        """Parameters shared by every query of one request."""
        params: Dict[str, Any] = {
            "language": "en-US",
            "sort_by": "popularity.desc",
            "include_adult": include_adult(filters.rating),
            "vote_count.gte": 50,
            "with_original_language": "en",
        }
        genre_ids = resolve_genre_ids(filters.genre, filters.mood)
        if genre_ids:
            params["with_genres"] = ",".join(str(g) for g in genre_ids)
        params.update(runtime_bounds(filters.length))
        return params

    def plan_queries(self, filters: Optional[QueryFilters] = None) -> List[QuerySpec]:
        """
        Build the query set for one request.

        Args:
            filters: Genre, mood, length and rating hints

        Returns:
            QuerySpecs in bucket order
        """
        filters = filters or QueryFilters()
        base = self.base_params(filters)

        specs: List[QuerySpec] = []
        for bucket in self.buckets:
            bucket_params = {**base, **bucket.params}
            for _ in range(bucket.count):
                specs.append(QuerySpec(
                    bucket=bucket.name,
                    filter_params=bucket_params,
                    page=self.rng.randint(1, bucket.max_page)
                ))

        self.logger.info(
            "Query plan built",
            query_count=len(specs),
            genre=filters.genre,
            mood=filters.mood,
            genres=base.get("with_genres"),
            include_adult=base["include_adult"]
        )
        return specs


def plan_queries(
    filters: Optional[QueryFilters] = None,
    regional_query_count: int = 15,
    seed: Optional[int] = None
) -> List[QuerySpec]:
    """Convenience wrapper building a one-off planner."""
    planner = UpstreamQueryPlanner(
        regional_query_count=regional_query_count,
        rng=random.Random(seed)
    )
    return planner.plan_queries(filters)
