"""Reputation scoring from public GitHub activity.

The score is a weighted sum of activity counts:

    score = 5 * public_repos + 3 * followers + 2 * total_stars + contributions

and the tier is a fixed band of the score. Scoring is pure and
deterministic, so the same metrics always produce the same score, and
increasing any count never lowers it.
"""

import logfire

from onboard.domain.error import InvalidMetricsError
from onboard.domain.value import (
    ActivityMetrics,
    ReputationBreakdown,
    ReputationScore,
    tier_for_score,
)

from .base import Service

REPO_WEIGHT = 5
FOLLOWER_WEIGHT = 3
STAR_WEIGHT = 2
CONTRIBUTION_WEIGHT = 1


def _check_count(name: str, value: object) -> int:
    # bool is an int subclass but never a valid count
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidMetricsError(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise InvalidMetricsError(f"{name} must not be negative, got {value}")
    return value


def calculate_reputation(metrics: ActivityMetrics) -> ReputationScore:
    """Compute score, tier and per-metric breakdown.

    Raises:
        InvalidMetricsError: If any count is negative or not an integer
    """
    repos = _check_count("public_repos", metrics.public_repos)
    followers = _check_count("followers", metrics.followers)
    stars = _check_count("total_stars", metrics.total_stars)
    contributions = _check_count(
        "contributions_last_year", metrics.contributions_last_year
    )

    breakdown = ReputationBreakdown(
        repos=repos * REPO_WEIGHT,
        followers=followers * FOLLOWER_WEIGHT,
        stars=stars * STAR_WEIGHT,
        contributions=contributions * CONTRIBUTION_WEIGHT,
    )
    score = (
        breakdown.repos + breakdown.followers + breakdown.stars + breakdown.contributions
    )
    return ReputationScore(score=score, tier=tier_for_score(score), breakdown=breakdown)


class ReputationEngine(Service):
    """Domain service wrapping the scoring function for injection."""

    def score(self, metrics: ActivityMetrics) -> ReputationScore:
        """Score activity metrics.

        Args:
            metrics: Raw activity counts

        Returns:
            Score with tier and breakdown

        Raises:
            InvalidMetricsError: If any count is negative or not an integer
        """
        with logfire.span("reputation_engine.score"):
            result = calculate_reputation(metrics)
            logfire.info(
                "Reputation scored",
                score=result.score,
                tier=result.tier.value,
            )
            return result
