"""
Unit tests for status spec parsing and weighted selection.
"""

from collections import Counter

import pytest

from pyhttpbin.core.random_source import RandomSource
from pyhttpbin.errors import ClientError
from pyhttpbin.introspect.status import (
    INVALID_SPEC_MESSAGE,
    OUT_OF_RANGE_MESSAGE,
    StatusResolver,
    StatusWeight,
    parse_status_spec,
)


class FixedDraw(RandomSource):
    """RandomSource whose random() always returns the same value."""

    def __init__(self, value: float):
        super().__init__(seed=0)
        self.value = value

    def random(self) -> float:
        return self.value


class TestParseStatusSpec:
    """Tests for parse_status_spec()."""

    def test_empty(self):
        assert parse_status_spec("") == []

    def test_single_code(self):
        assert parse_status_spec("404") == [StatusWeight(404, 1.0)]

    def test_single_code_not_integer(self):
        with pytest.raises(ClientError) as exc_info:
            parse_status_spec("abc")

        assert exc_info.value.message == INVALID_SPEC_MESSAGE

    def test_weighted(self):
        assert parse_status_spec("200:0.9,500:0.1") == [
            StatusWeight(200, 0.9),
            StatusWeight(500, 0.1),
        ]

    def test_whitespace_tolerated(self):
        assert parse_status_spec(" 200 : 1 , 500:2") == [
            StatusWeight(200, 1.0),
            StatusWeight(500, 2.0),
        ]

    def test_malformed_segments_skipped(self):
        assert parse_status_spec("200:1,oops,503:x,1:2:3,500:1") == [
            StatusWeight(200, 1.0),
            StatusWeight(500, 1.0),
        ]

    def test_unusual_weights_kept(self):
        assert parse_status_spec("200:-1,500:inf") == [
            StatusWeight(200, -1.0),
            StatusWeight(500, float("inf")),
        ]

    def test_all_segments_malformed(self):
        assert parse_status_spec("a:b,c:d") == []

    def test_out_of_range_code_still_parsed(self):
        assert parse_status_spec("600") == [StatusWeight(600, 1.0)]


class TestStatusResolver:
    """Tests for StatusResolver."""

    def test_single_code(self, rng):
        assert StatusResolver(rng).resolve("418") == 418

    @pytest.mark.parametrize("spec", ["", "abc", "a:b"])
    def test_invalid_spec(self, rng, spec):
        with pytest.raises(ClientError) as exc_info:
            StatusResolver(rng).resolve(spec)

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == INVALID_SPEC_MESSAGE

    @pytest.mark.parametrize("spec", ["99", "600", "-1", "600:1,700:1"])
    def test_out_of_range(self, rng, spec):
        with pytest.raises(ClientError) as exc_info:
            StatusResolver(rng).resolve(spec)

        assert exc_info.value.message == OUT_OF_RANGE_MESSAGE

    @pytest.mark.parametrize("code", [100, 200, 404, 599])
    def test_boundaries(self, rng, code):
        assert StatusResolver(rng).resolve(str(code)) == code

    def test_zero_weight_never_chosen(self):
        resolver = StatusResolver(FixedDraw(0.0))

        assert resolver.resolve("500:0,200:1") == 200

    def test_zero_weight_never_chosen_seeded(self, rng):
        resolver = StatusResolver(rng)

        results = {resolver.resolve("200:1,500:0") for _ in range(200)}

        assert results == {200}

    def test_draw_walks_cumulative_weights(self):
        weights = [StatusWeight(200, 0.5), StatusWeight(500, 0.5)]

        assert StatusResolver(FixedDraw(0.49)).select(weights) == 200
        assert StatusResolver(FixedDraw(0.6)).select(weights) == 500

    def test_draw_on_boundary_picks_earlier_entry(self):
        weights = [StatusWeight(200, 0.5), StatusWeight(500, 0.5)]

        assert StatusResolver(FixedDraw(0.5)).select(weights) == 200

    def test_all_zero_returns_first(self):
        weights = [StatusWeight(200, 0), StatusWeight(503, 0)]

        assert StatusResolver(FixedDraw(0.3)).select(weights) == 200

    def test_all_zero_resolves_to_first(self, rng):
        resolver = StatusResolver(rng)

        assert {resolver.resolve("200:0,500:0") for _ in range(50)} == {200}

    @pytest.mark.parametrize("spec", ["200:-1", "200:inf", "200:nan"])
    def test_singleton_weight_ignored(self, rng, spec):
        assert StatusResolver(rng).resolve(spec) == 200

    def test_negative_weight_counts_as_zero(self, rng):
        resolver = StatusResolver(rng)

        assert {resolver.resolve("200:-1,500:1") for _ in range(50)} == {500}

    def test_nan_weight_counts_as_zero(self):
        resolver = StatusResolver(FixedDraw(0.0))

        assert resolver.resolve("200:nan,500:1") == 500

    def test_infinite_weight_wins(self, rng):
        resolver = StatusResolver(rng)

        assert {resolver.resolve("200:1,503:inf,500:inf") for _ in range(50)} == {503}

    def test_overflowing_total(self):
        weights = [StatusWeight(200, 1e308), StatusWeight(500, 1e308)]

        assert StatusResolver(FixedDraw(0.25)).select(weights) == 200
        assert StatusResolver(FixedDraw(0.75)).select(weights) == 500

    def test_select_empty(self, rng):
        with pytest.raises(ClientError):
            StatusResolver(rng).select([])

    def test_distribution(self, rng):
        resolver = StatusResolver(rng)

        counts = Counter(resolver.resolve("200:0.75,500:0.25") for _ in range(2000))

        assert set(counts) == {200, 500}
        assert 0.65 < counts[200] / 2000 < 0.85
