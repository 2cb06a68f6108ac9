"""Tests for bracket generation and tournament start."""

import random

import pytest

from helpers import DURATION_SEC, JUDGE_ID
from tournaments import (
    InsufficientEntrantsError,
    InvalidStateError,
    MatchStatus,
    NotFoundError,
    TournamentStatus,
)
from tournaments.bracket import fisher_yates_shuffle, pair_entrants
from tournaments.models import TournamentCreateRequest


class TestShuffle:
    @pytest.mark.unit
    def test_is_a_permutation(self) -> None:
        items = list(range(16))
        shuffled = fisher_yates_shuffle(items, random.Random(3))
        assert sorted(shuffled) == items
        assert items == list(range(16))  # input untouched

    @pytest.mark.unit
    def test_same_seed_same_order(self) -> None:
        items = [101, 102, 103, 104, 105, 106]
        assert fisher_yates_shuffle(items, random.Random(99)) == fisher_yates_shuffle(
            items, random.Random(99)
        )

    @pytest.mark.unit
    def test_handles_tiny_inputs(self) -> None:
        assert fisher_yates_shuffle([], random.Random(1)) == []
        assert fisher_yates_shuffle([5], random.Random(1)) == [5]


class TestPairEntrants:
    @pytest.mark.unit
    def test_even_count_pairs_consecutively(self) -> None:
        pairs, leftover = pair_entrants([1, 2, 3, 4])
        assert pairs == [(1, 2), (3, 4)]
        assert leftover is None

    @pytest.mark.unit
    def test_odd_count_leaves_last_entrant(self) -> None:
        pairs, leftover = pair_entrants([1, 2, 3, 4, 5])
        assert pairs == [(1, 2), (3, 4)]
        assert leftover == 5


class TestStartTournament:
    def test_fixed_seed_gives_exact_pairings(self, manager, make_tournament) -> None:
        tournament = make_tournament(manager, entrants=4)

        result = manager.start_tournament(tournament.id)

        expected = fisher_yates_shuffle([101, 102, 103, 104], random.Random(1234))
        pairs = [(m.competitor_a, m.competitor_b) for m in result.matches]
        assert pairs == [(expected[0], expected[1]), (expected[2], expected[3])]
        assert result.total_paired == 4

    @pytest.mark.parametrize("entrants", [2, 4, 8, 12, 16])
    def test_every_entrant_plays_exactly_once(
        self, manager, make_tournament, entrants
    ) -> None:
        tournament = make_tournament(manager, entrants=entrants)

        result = manager.start_tournament(tournament.id)

        assert len(result.matches) == entrants // 2
        seen = [c for m in result.matches for c in m.competitors]
        assert sorted(seen) == [100 + n for n in range(1, entrants + 1)]
        assert result.total_paired == entrants

    def test_matches_are_pending_round_one_with_judge_and_duration(
        self, manager, make_tournament
    ) -> None:
        tournament = make_tournament(manager, entrants=4)

        manager.start_tournament(tournament.id)

        matches = manager.get_matches(tournament.id)
        assert len(matches) == 2
        for match in matches:
            assert match.round_number == 1
            assert match.status == MatchStatus.PENDING
            assert match.winner_id is None
            assert match.judge_id == JUDGE_ID
            assert match.duration_sec == DURATION_SEC

    def test_activates_the_tournament(self, manager, make_tournament) -> None:
        tournament = make_tournament(manager, entrants=4)

        manager.start_tournament(tournament.id)

        started = manager.get_tournament(tournament.id)
        assert started.status == TournamentStatus.ACTIVE
        assert started.started_at is not None

    def test_explicit_judge_and_duration_override_defaults(
        self, manager, make_tournament
    ) -> None:
        tournament = make_tournament(manager, entrants=2)

        result = manager.start_tournament(tournament.id, judge_id=77, duration_sec=60)

        assert result.matches[0].judge_id == 77
        assert result.matches[0].duration_sec == 60

    def test_configured_duration_used_when_tournament_has_none(self, manager) -> None:
        tournament = manager.create_tournament(
            TournamentCreateRequest(name="No Duration", category_id=1, judge_id=5)
        )
        manager.register_entrant(tournament.id, 101, 201, 301)
        manager.register_entrant(tournament.id, 102, 202, 302)

        result = manager.start_tournament(tournament.id)

        assert result.matches[0].duration_sec == manager.config.bracket.default_combat_duration_sec

    def test_no_judge_is_invalid_state(self, manager) -> None:
        tournament = manager.create_tournament(
            TournamentCreateRequest(name="Judgeless", category_id=1)
        )
        manager.register_entrant(tournament.id, 101, 201, 301)
        manager.register_entrant(tournament.id, 102, 202, 302)

        with pytest.raises(InvalidStateError):
            manager.start_tournament(tournament.id)

    def test_second_start_is_invalid_state(self, manager, make_tournament) -> None:
        tournament = make_tournament(manager, entrants=4)
        manager.start_tournament(tournament.id)

        with pytest.raises(InvalidStateError) as exc_info:
            manager.start_tournament(tournament.id)

        assert exc_info.value.kind == "invalid_state"
        assert len(manager.get_matches(tournament.id)) == 2

    def test_cancelled_tournament_cannot_start(self, manager, make_tournament) -> None:
        tournament = make_tournament(manager, entrants=4)
        manager.cancel_tournament(tournament.id)

        with pytest.raises(InvalidStateError):
            manager.start_tournament(tournament.id)
        assert manager.get_matches(tournament.id) == []

    @pytest.mark.parametrize("entrants", [0, 1])
    def test_too_few_entrants(self, manager, make_tournament, entrants) -> None:
        tournament = make_tournament(manager, entrants=entrants)

        with pytest.raises(InsufficientEntrantsError) as exc_info:
            manager.start_tournament(tournament.id)

        # Also an InvalidState for callers that only know the broader kind
        assert isinstance(exc_info.value, InvalidStateError)
        assert manager.get_tournament(tournament.id).status == TournamentStatus.DRAFT
        assert manager.get_matches(tournament.id) == []

    def test_unknown_tournament(self, manager) -> None:
        with pytest.raises(NotFoundError):
            manager.start_tournament(4040, judge_id=1, duration_sec=60)

    def test_generator_reports_missing_tournament(self, manager) -> None:
        with pytest.raises(NotFoundError):
            manager.bracket.generate(4040, judge_id=1, duration_sec=60)


class TestOddEntrants:
    def test_drop_policy_leaves_last_entrant_out(
        self, make_manager, make_tournament
    ) -> None:
        manager = make_manager("drop", seed=5)
        tournament = make_tournament(manager, entrants=5)

        result = manager.start_tournament(tournament.id)

        expected = fisher_yates_shuffle([101, 102, 103, 104, 105], random.Random(5))
        assert len(result.matches) == 2
        assert result.total_paired == 4
        assert result.dropped == [expected[-1]]
        assert result.byes == []

    def test_bye_policy_records_a_bye(self, make_manager, make_tournament) -> None:
        manager = make_manager("bye", seed=5)
        tournament = make_tournament(manager, entrants=5)

        result = manager.start_tournament(tournament.id)

        expected = fisher_yates_shuffle([101, 102, 103, 104, 105], random.Random(5))
        assert result.byes == [expected[-1]]
        assert result.dropped == []
        bracket = manager.get_bracket_view(tournament.id)
        assert [(b.round_number, b.competitor_id) for b in bracket.byes] == [
            (1, expected[-1])
        ]
