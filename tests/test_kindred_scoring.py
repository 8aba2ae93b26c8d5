"""Unit tests for the Kindred Score engine: components, caps, reasons, ranking."""
import uuid

import pytest

from app.services.kindred_service import (
    CompanionProfile,
    ComponentScore,
    KindredScorer,
    PersonalityTraits,
    ScoringComponent,
    SeniorProfile,
    extract_state,
    filter_eligible,
)


class TestWorkedExample:
    """Maggie (Austin, TX) against Sarah (Austin, TX, part-time)."""

    def test_total_score(self, maggie_profile, sarah_profile):
        # interests 4/6 * 40 = 26.67, personality round(8 + 0.88*17) = 23,
        # one-on-one 15, qualities 3*2 = 6, practical 5+3+2 = 10 -> 80.67
        result = KindredScorer().score(maggie_profile, sarah_profile)
        assert result.total == 81

    def test_breakdown(self, maggie_profile, sarah_profile):
        breakdown = KindredScorer().score(maggie_profile, sarah_profile).breakdown
        assert breakdown["shared_interests"] == pytest.approx(40 * 4 / 6)
        assert breakdown["personality"] == 23
        assert breakdown["communication_style"] == 15
        assert breakdown["companion_qualities"] == 6
        assert breakdown["practical_factors"] == 10

    def test_reasons_in_component_order(self, maggie_profile, sarah_profile):
        reasons = KindredScorer().score(maggie_profile, sarah_profile).reasons
        assert reasons == (
            "4 shared interests including Italian cooking and Travel stories",
            "Strong personality compatibility",
            "Matches 3 preferred companion qualities",
            "Nearby location",
        )


class TestSharedInterests:

    def test_single_shared_interest_reason(self):
        senior = SeniorProfile(interests=("Gardening", "Chess"))
        companion = CompanionProfile(interests=("gardening clubs",))
        result = KindredScorer().score(senior, companion)
        assert result.reasons[0] == "Shared love of Gardening"
        assert result.breakdown["shared_interests"] == pytest.approx(20.0)

    def test_first_word_substring_match_is_case_insensitive(self):
        senior = SeniorProfile(interests=("Italian cooking",))
        companion = CompanionProfile(interests=("ITALIAN art",))
        result = KindredScorer().score(senior, companion)
        assert result.breakdown["shared_interests"] == pytest.approx(40.0)

    def test_no_interests_scores_zero(self):
        result = KindredScorer().score(SeniorProfile(), CompanionProfile(interests=("Chess",)))
        assert result.breakdown["shared_interests"] == 0
        assert not any("shared" in r.lower() for r in result.reasons)


class TestPersonality:

    def test_missing_personality_is_neutral(self):
        result = KindredScorer().score(SeniorProfile(personality=None), CompanionProfile())
        assert result.breakdown["personality"] == 12
        assert "Good personality fit" not in result.reasons

    def test_empty_personality_uses_default_agreeableness(self):
        # 8 + 0.70 * 17 = 19.9 -> 20
        senior = SeniorProfile(personality=PersonalityTraits.from_mapping({}))
        result = KindredScorer().score(senior, CompanionProfile())
        assert result.breakdown["personality"] == 20
        assert "Strong personality compatibility" in result.reasons

    def test_good_fit_tier(self):
        # 8 + 0.30 * 17 = 13.1 -> 13
        senior = SeniorProfile(personality=PersonalityTraits(agreeableness=30))
        result = KindredScorer().score(senior, CompanionProfile())
        assert result.breakdown["personality"] == 13
        assert "Good personality fit" in result.reasons

    def test_low_agreeableness_has_no_reason(self):
        senior = SeniorProfile(personality=PersonalityTraits(agreeableness=0))
        result = KindredScorer().score(senior, CompanionProfile())
        assert result.breakdown["personality"] == 8
        assert result.reasons == ()


class TestCommunicationAndPractical:

    def test_activity_bonus_needs_shared_interest(self):
        style = ("Opens up over a shared activity",)
        without = KindredScorer().score(SeniorProfile(social_style=style), CompanionProfile())
        with_shared = KindredScorer().score(
            SeniorProfile(social_style=style, interests=("Chess",)),
            CompanionProfile(interests=("chess",)),
        )
        assert without.breakdown["communication_style"] == 10
        assert with_shared.breakdown["communication_style"] == 13

    def test_communication_is_capped(self):
        style = ("Prefers one-on-one over groups", "Opens up over a shared activity")
        result = KindredScorer().score(
            SeniorProfile(social_style=style, interests=("Chess",)),
            CompanionProfile(interests=("chess",)),
        )
        assert result.breakdown["communication_style"] == 15

    def test_weekend_only_companion_gets_no_availability_bonus(self):
        result = KindredScorer().score(
            SeniorProfile(location="Austin, TX"),
            CompanionProfile(availability="weekends", state="tx"),
        )
        assert result.breakdown["practical_factors"] == 7
        assert "Nearby location" in result.reasons

    def test_bare_profiles(self):
        # 0 + 12 + 10 + 0 + 5
        assert KindredScorer().score(SeniorProfile(), CompanionProfile()).total == 27


class TestScorer:

    def test_component_points_are_clamped_to_weight(self):
        class Greedy(ScoringComponent):
            name = "greedy"
            weight = 10

            def score(self, senior, companion, context):
                return ComponentScore(points=50)

        result = KindredScorer([Greedy()]).score(SeniorProfile(), CompanionProfile())
        assert result.total == 10

    def test_total_is_capped_at_100(self):
        class Maxed(ScoringComponent):
            name = "maxed"
            weight = 60

            def score(self, senior, companion, context):
                return ComponentScore(points=60)

        result = KindredScorer([Maxed(), Maxed()]).score(SeniorProfile(), CompanionProfile())
        assert result.total == 100

    def test_rank_orders_descending_and_limits(self, maggie_profile, sarah_profile):
        weak = CompanionProfile(id=uuid.uuid4(), availability="weekends")
        results = KindredScorer().rank(maggie_profile, [weak, sarah_profile], limit=1)
        assert [r.companion_id for r in results] == [sarah_profile.id]

    def test_rank_ties_keep_pool_order(self):
        a = CompanionProfile(id=uuid.uuid4())
        b = CompanionProfile(id=uuid.uuid4())
        results = KindredScorer().rank(SeniorProfile(), [a, b], limit=5)
        assert [r.companion_id for r in results] == [a.id, b.id]

    def test_scoring_is_deterministic(self, maggie_profile, sarah_profile):
        scorer = KindredScorer()
        assert scorer.score(maggie_profile, sarah_profile) == scorer.score(maggie_profile, sarah_profile)


class TestEligibility:

    def test_inactive_and_matched_companions_are_dropped(self):
        active = CompanionProfile(id=uuid.uuid4())
        training = CompanionProfile(id=uuid.uuid4(), status="TRAINING")
        rejected = CompanionProfile(id=uuid.uuid4())
        proposed = CompanionProfile(id=uuid.uuid4())
        pool = [active, training, rejected, proposed]

        eligible = filter_eligible(pool, [(rejected.id, "REJECTED"), (proposed.id, "PROPOSED")])
        assert eligible == [active]


class TestExtractState:

    @pytest.mark.parametrize("location, expected", [
        ("Austin, TX", "TX"),
        ("Austin,TX", "TX"),
        ("Austin, tx", None),
        ("Austin", None),
        ("", None),
        (None, None),
    ])
    def test_extract_state(self, location, expected):
        assert extract_state(location) == expected
