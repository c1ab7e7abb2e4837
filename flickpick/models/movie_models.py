"""
Movie Models

Data models for movie candidates, catalog queries and aggregation results.
Normalizes raw TMDB discover records into a single candidate shape used by
both the live aggregation path and the curated fallback table.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Optional, Any, Mapping

import structlog

logger = structlog.get_logger(__name__)

TMDB_POSTER_BASE_URL = "https://image.tmdb.org/t/p/w500"
TMDB_BACKDROP_BASE_URL = "https://image.tmdb.org/t/p/original"
PLACEHOLDER_POSTER_URL = "https://via.placeholder.com/500x750?text=No+Poster"

DEFAULT_OVERVIEW = "No description available."
DEFAULT_RATING = 6.0
UNKNOWN_YEAR = "Unknown"


@dataclass
class MovieCandidate:
    """
    A movie that can be shown to the user.

    external_id is the catalog identifier and is unique within one
    aggregation run.
    """
    external_id: int
    title: str
    overview: str = DEFAULT_OVERVIEW
    rating: float = DEFAULT_RATING
    release_year: str = UNKNOWN_YEAR
    poster_url: Optional[str] = None
    backdrop_url: Optional[str] = None
    vote_count: int = 0
    popularity: float = 0.0

    def __post_init__(self):
        """Post-initialization processing."""
        self.title = str(self.title).strip() if self.title else ""
        if self.release_year is None:
            self.release_year = UNKNOWN_YEAR
        else:
            self.release_year = str(self.release_year)

    @classmethod
    def from_tmdb(cls, record: Dict[str, Any]) -> "MovieCandidate":
        """
        Create a candidate from a raw TMDB discover record.

        Missing poster, overview, rating and release date fields are
        coalesced to safe defaults.

        Args:
            record: Raw result item from /discover/movie

        Returns:
            MovieCandidate instance

        Raises:
            ValueError: If the record has no usable id, or a text field
                holds a non-string value
        """
        movie_id = record.get("id")
        if movie_id is None:
            raise ValueError("TMDB record has no id")
        if isinstance(movie_id, bool) or not isinstance(movie_id, (int, str)):
            raise ValueError(f"TMDB record id has unsupported type {type(movie_id).__name__}")

        title = record.get("title") or record.get("original_title") or "Untitled"
        release_date = record.get("release_date")
        overview = record.get("overview") or DEFAULT_OVERVIEW
        for name, value in (("title", title), ("release_date", release_date), ("overview", overview)):
            if value is not None and not isinstance(value, str):
                raise ValueError(f"TMDB record field {name} is {type(value).__name__}, expected str")

        poster_path = record.get("poster_path")
        backdrop_path = record.get("backdrop_path")
        vote_average = record.get("vote_average")

        return cls(
            external_id=movie_id,
            title=title,
            overview=overview,
            rating=round(float(vote_average), 1) if vote_average else DEFAULT_RATING,
            release_year=release_date.split("-")[0] if release_date else UNKNOWN_YEAR,
            poster_url=(
                f"{TMDB_POSTER_BASE_URL}{poster_path}" if poster_path else PLACEHOLDER_POSTER_URL
            ),
            backdrop_url=f"{TMDB_BACKDROP_BASE_URL}{backdrop_path}" if backdrop_path else None,
            vote_count=record.get("vote_count") or 0,
            popularity=record.get("popularity") or 0.0,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "external_id": self.external_id,
            "title": self.title,
            "overview": self.overview,
            "rating": self.rating,
            "release_year": self.release_year,
            "poster_url": self.poster_url,
            "backdrop_url": self.backdrop_url,
            "vote_count": self.vote_count,
            "popularity": self.popularity,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MovieCandidate":
        """Create from dictionary."""
        return cls(**data)


@dataclass(frozen=True)
class QuerySpec:
    """
    One parameterized request against the catalog.

    Immutable once built; filter_params is exposed as a read-only mapping.
    """
    bucket: str
    filter_params: Mapping[str, Any]
    page: int = 1

    def __post_init__(self):
        if self.page < 1:
            raise ValueError(f"page must be >= 1, got {self.page}")
        object.__setattr__(
            self, "filter_params", MappingProxyType(dict(self.filter_params))
        )

    def to_params(self) -> Dict[str, Any]:
        """Flatten into the query parameters of a single discover call."""
        params = dict(self.filter_params)
        params["page"] = self.page
        return params


class AggregationOutcome(Enum):
    """How an aggregation run ended."""
    OK = "ok"                    # At least one candidate returned
    ALL_FAILED = "all_failed"    # Every upstream call failed
    NO_RESULTS = "no_results"    # Some calls succeeded but nothing usable came back


@dataclass
class AggregationResult:
    """Capped, shuffled, deduplicated candidate pool from one aggregation run."""
    movies: List[MovieCandidate] = field(default_factory=list)
    outcome: AggregationOutcome = AggregationOutcome.NO_RESULTS
    requested: int = 0
    succeeded: int = 0
    failed: int = 0
    raw_count: int = 0
    unique_count: int = 0

    def __len__(self) -> int:
        return len(self.movies)

    def __iter__(self):
        return iter(self.movies)

    @property
    def is_empty(self) -> bool:
        """Whether the caller must substitute the curated fallback."""
        return not self.movies
