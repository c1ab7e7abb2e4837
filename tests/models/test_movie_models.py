"""
Tests for movie, conversation and configuration models.
"""

import pytest

from flickpick.models.config_models import SystemConfig
from flickpick.models.conversation_models import ConversationTurn, ConversationRole
from flickpick.models.movie_models import (
    MovieCandidate,
    QuerySpec,
    AggregationResult,
    PLACEHOLDER_POSTER_URL,
)


class TestMovieCandidate:

    def test_from_tmdb_full_record(self):
        movie = MovieCandidate.from_tmdb({
            "id": 27205,
            "title": "Inception",
            "overview": "Dreams within dreams.",
            "vote_average": 8.368,
            "vote_count": 35000,
            "popularity": 99.5,
            "release_date": "2010-07-15",
            "poster_path": "/inception.jpg",
            "backdrop_path": "/bg.jpg",
        })

        assert movie.external_id == 27205
        assert movie.rating == 8.4
        assert movie.release_year == "2010"
        assert movie.poster_url == "https://image.tmdb.org/t/p/w500/inception.jpg"
        assert movie.backdrop_url == "https://image.tmdb.org/t/p/original/bg.jpg"
        assert movie.vote_count == 35000

    def test_from_tmdb_coalesces_missing_fields(self):
        movie = MovieCandidate.from_tmdb({
            "id": 1, "original_title": "Original", "overview": "", "vote_average": 0, "release_date": ""
        })

        assert movie.title == "Original"
        assert movie.overview == "No description available."
        assert movie.rating == 6.0
        assert movie.release_year == "Unknown"
        assert movie.poster_url == PLACEHOLDER_POSTER_URL

    def test_from_tmdb_requires_id(self):
        with pytest.raises(ValueError):
            MovieCandidate.from_tmdb({"title": "No id"})

    @pytest.mark.parametrize("record", [
        {"id": [7], "title": "List id"},
        {"id": True, "title": "Bool id"},
        {"id": 5, "title": "Numeric date", "release_date": 2019},
        {"id": 6, "title": 123},
        {"id": 8, "title": "Numeric overview", "overview": 42},
    ])
    def test_from_tmdb_rejects_wrongly_typed_fields(self, record):
        with pytest.raises(ValueError):
            MovieCandidate.from_tmdb(record)

    def test_dict_roundtrip(self):
        movie = MovieCandidate(external_id=5, title="  Heat ", release_year=1995)

        restored = MovieCandidate.from_dict(movie.to_dict())

        assert restored == movie
        assert restored.title == "Heat"
        assert restored.release_year == "1995"


class TestQuerySpec:

    def test_page_must_be_positive(self):
        with pytest.raises(ValueError):
            QuerySpec(bucket="classics", filter_params={}, page=0)

    def test_source_mapping_changes_do_not_leak(self):
        params = {"with_genres": "28"}
        spec = QuerySpec(bucket="classics", filter_params=params)
        params["with_genres"] = "35"

        assert spec.filter_params["with_genres"] == "28"


class TestAggregationResult:

    def test_empty_by_default(self):
        result = AggregationResult()

        assert result.is_empty
        assert len(result) == 0
        assert list(result) == []


class TestConversationTurn:

    def test_string_role_is_coerced(self):
        turn = ConversationTurn(role="assistant", content="hi")

        assert turn.role is ConversationRole.ASSISTANT
        assert turn.to_message() == {"role": "assistant", "content": "hi"}

    def test_unknown_role_rejected(self):
        with pytest.raises(ValueError):
            ConversationTurn(role="narrator", content="...")

    def test_dict_roundtrip(self):
        turn = ConversationTurn(role=ConversationRole.USER, content="hello")

        assert ConversationTurn.from_dict(turn.to_dict()) == turn


class TestSystemConfig:

    def test_defaults(self):
        config = SystemConfig()

        assert config.aggregation_cap == 100
        assert config.memory_max_turns == 30
        assert config.regional_query_count == 15

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("TMDB_API_KEY", "tmdb")
        monkeypatch.setenv("AGGREGATION_CAP", "50")
        monkeypatch.setenv("REGIONAL_QUERY_COUNT", "0")
        monkeypatch.delenv("GROQ_API_KEY", raising=False)

        config = SystemConfig.from_env()

        assert config.tmdb_api_key == "tmdb"
        assert config.aggregation_cap == 50
        assert config.regional_query_count == 0
        assert config.groq_api_key is None

    def test_invalid_cap_rejected(self):
        with pytest.raises(ValueError):
            SystemConfig(aggregation_cap=0)
