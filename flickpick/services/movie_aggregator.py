"""
Parallel Movie Aggregator

Executes a planned set of catalog queries concurrently and merges the
results into one candidate pool: deduplicated by catalog id (first seen
wins), uniformly shuffled, capped and normalized.

Every call runs in its own failure boundary with its own timeout. A failed
call contributes nothing and never cancels the others; the aggregator waits
for all calls to settle before merging. An empty result is returned rather
than raised, and the caller is responsible for substituting the curated
fallback (see RecommendationService).
"""

import asyncio
import random
import time
from typing import Dict, List, Optional, Any, Sequence

import structlog

from ..models.movie_models import (
    MovieCandidate,
    QuerySpec,
    AggregationOutcome,
    AggregationResult,
)

logger = structlog.get_logger(__name__)

DEFAULT_CAP = 100
DEFAULT_TIMEOUT_SECONDS = 10.0


class ParallelAggregator:
    """
    Fan-out/fan-in aggregation over a catalog client.

    The catalog client must expose
    `async discover_movies(spec: QuerySpec) -> list[dict]` and raise on failure.
    """

    def __init__(
        self,
        catalog_client,
        cap: int = DEFAULT_CAP,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        rng: Optional[random.Random] = None
    ):
        """
        Initialize the aggregator.

        Args:
            catalog_client: Catalog client (TmdbClient in production)
            cap: Maximum number of candidates returned
            timeout: Per-call timeout in seconds
            rng: Random source used for shuffling
        """
        if cap < 1:
            raise ValueError("cap must be >= 1")
        self.catalog_client = catalog_client
        self.cap = cap
        self.timeout = timeout
        self.rng = rng or random.Random()
        self.logger = logger.bind(component="ParallelAggregator")

    async def _fetch(self, index: int, spec: QuerySpec) -> Optional[List[Dict[str, Any]]]:
        """
        Run one query inside its own failure boundary.

        Returns:
            Raw records, or None if the call failed
        """
        try:
            results = await asyncio.wait_for(
                self.catalog_client.discover_movies(spec), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            self.logger.warning(
                "Upstream query timed out",
                query_index=index,
                bucket=spec.bucket,
                page=spec.page,
                timeout=self.timeout
            )
            return None
        except Exception as e:
            self.logger.warning(
                "Upstream query failed",
                query_index=index,
                bucket=spec.bucket,
                page=spec.page,
                error=str(e),
                error_type=type(e).__name__
            )
            return None

        if not isinstance(results, list):
            self.logger.warning(
                "Upstream query returned malformed payload",
                query_index=index,
                bucket=spec.bucket,
                payload_type=type(results).__name__
            )
            return None
        return results

    async def aggregate(self, specs: Sequence[QuerySpec]) -> AggregationResult:
        """
        Execute all queries and merge their results.

        Args:
            specs: Queries to execute

        Returns:
            AggregationResult, empty when nothing usable came back
        """
        start_time = time.monotonic()
        settled = await asyncio.gather(
            *(self._fetch(i, spec) for i, spec in enumerate(specs))
        )

        successful = [batch for batch in settled if batch is not None]
        failed = len(settled) - len(successful)
        raw_records = [record for batch in successful for record in batch]

        unique = self._deduplicate(raw_records)
        self.rng.shuffle(unique)
        movies = self._normalize(unique[:self.cap])

        if movies:
            outcome = AggregationOutcome.OK
        elif specs and not successful:
            outcome = AggregationOutcome.ALL_FAILED
        else:
            outcome = AggregationOutcome.NO_RESULTS

        result = AggregationResult(
            movies=movies,
            outcome=outcome,
            requested=len(specs),
            succeeded=len(successful),
            failed=failed,
            raw_count=len(raw_records),
            unique_count=len(unique)
        )

        log_context = dict(
            requested=result.requested,
            succeeded=result.succeeded,
            failed=result.failed,
            raw_count=result.raw_count,
            unique_count=result.unique_count,
            returned=len(movies),
            duration_seconds=round(time.monotonic() - start_time, 3)
        )
        if outcome is AggregationOutcome.ALL_FAILED:
            self.logger.error("All upstream queries failed", **log_context)
        elif outcome is AggregationOutcome.NO_RESULTS:
            self.logger.warning("Upstream queries returned no usable movies", **log_context)
        else:
            self.logger.info("Aggregation completed", **log_context)

        return result

    def _deduplicate(self, records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Keep the first record seen for each catalog id; drop records without a usable one."""
        seen = set()
        unique = []
        for record in records:
            if not isinstance(record, dict):
                continue
            movie_id = record.get("id")
            if isinstance(movie_id, bool) or not isinstance(movie_id, (int, str)):
                continue
            if movie_id in seen:
                continue
            seen.add(movie_id)
            unique.append(record)
        return unique

    def _normalize(self, records: List[Dict[str, Any]]) -> List[MovieCandidate]:
        movies = []
        for record in records:
            try:
                movies.append(MovieCandidate.from_tmdb(record))
            except (TypeError, ValueError, AttributeError) as e:
                self.logger.debug("Skipping malformed movie record", movie_id=record.get("id"), error=str(e))
        return movies
