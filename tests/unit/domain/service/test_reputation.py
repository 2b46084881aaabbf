"""Unit tests for reputation scoring."""

import pytest

from onboard.domain.error import InvalidMetricsError
from onboard.domain.service import ReputationEngine, calculate_reputation
from onboard.domain.value import ActivityMetrics, ReputationTier, tier_for_score


def metrics(repos=0, followers=0, stars=0, contributions=0) -> ActivityMetrics:
    return ActivityMetrics(
        public_repos=repos,
        followers=followers,
        total_stars=stars,
        contributions_last_year=contributions,
    )


class TestCalculateReputation:
    """Tests for the weighted score."""

    def test_octocat_scenario(self):
        """15 repos, 50 followers, 200 stars, 500 contributions score 1125."""
        result = calculate_reputation(metrics(15, 50, 200, 500))

        assert result.score == 1125
        assert result.breakdown.repos == 75
        assert result.breakdown.followers == 150
        assert result.breakdown.stars == 400
        assert result.breakdown.contributions == 500
        # 1001-2500 is the Experienced band
        assert result.tier == ReputationTier.EXPERIENCED

    def test_zero_activity_is_novice(self):
        result = calculate_reputation(metrics())

        assert result.score == 0
        assert result.tier == ReputationTier.NOVICE

    def test_deterministic(self):
        first = calculate_reputation(metrics(3, 4, 5, 6))
        second = calculate_reputation(metrics(3, 4, 5, 6))

        assert first == second

    @pytest.mark.parametrize("field", ["repos", "followers", "stars", "contributions"])
    def test_increasing_any_count_never_lowers_score(self, field):
        counts = {"repos": 10, "followers": 10, "stars": 10, "contributions": 10}
        base = calculate_reputation(metrics(**counts)).score

        counts[field] += 1
        bumped = calculate_reputation(metrics(**counts)).score

        assert bumped > base

    def test_negative_count_rejected(self):
        with pytest.raises(InvalidMetricsError, match="followers"):
            calculate_reputation(metrics(followers=-1))

    def test_non_integer_count_rejected(self):
        bad = ActivityMetrics.model_construct(
            public_repos=1.5, followers=0, total_stars=0, contributions_last_year=0
        )

        with pytest.raises(InvalidMetricsError, match="public_repos"):
            calculate_reputation(bad)

    def test_boolean_count_rejected(self):
        bad = ActivityMetrics.model_construct(
            public_repos=0, followers=True, total_stars=0, contributions_last_year=0
        )

        with pytest.raises(InvalidMetricsError):
            calculate_reputation(bad)


class TestTierForScore:
    """Tests for the tier bands."""

    @pytest.mark.parametrize(
        "score,tier",
        [
            (0, ReputationTier.NOVICE),
            (100, ReputationTier.NOVICE),
            (101, ReputationTier.CONTRIBUTOR),
            (500, ReputationTier.CONTRIBUTOR),
            (501, ReputationTier.ACTIVE_DEVELOPER),
            (1000, ReputationTier.ACTIVE_DEVELOPER),
            (1001, ReputationTier.EXPERIENCED),
            (2500, ReputationTier.EXPERIENCED),
            (2501, ReputationTier.EXPERT),
        ],
    )
    def test_band_edges(self, score, tier):
        assert tier_for_score(score) == tier


class TestReputationEngine:
    def test_score_matches_pure_function(self):
        engine = ReputationEngine()

        assert engine.score(metrics(1, 2, 3, 4)) == calculate_reputation(metrics(1, 2, 3, 4))
