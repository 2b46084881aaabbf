"""Unit tests for the Member model."""

import pytest

from onboard.domain.value import ReputationTier
from tests.factories import make_member


class TestReputationTier:
    @pytest.mark.parametrize(
        "score,tier",
        [
            (0, ReputationTier.NOVICE),
            (1125, ReputationTier.EXPERIENCED),
            (2501, ReputationTier.EXPERT),
        ],
    )
    def test_tier_follows_score(self, score, tier):
        member = make_member(reputation_score=score)

        assert member.reputation_tier == tier

    def test_tier_is_recomputed_on_update(self):
        member = make_member(reputation_score=50)

        updated = member.model_copy(update={"reputation_score": 600})

        assert updated.reputation_tier == ReputationTier.ACTIVE_DEVELOPER

    def test_tier_is_serialized(self):
        member = make_member(reputation_score=1125)

        assert member.model_dump()["reputation_tier"] == ReputationTier.EXPERIENCED
