"""Tests for the registration ledger."""

from datetime import datetime, timedelta, timezone

import pytest

from helpers import finish_round
from tournaments import (
    AlreadyRegisteredError,
    InvalidStateError,
    NotFoundError,
    RegistrationBlockedError,
    RobotOwnershipError,
)


def test_registration_is_recorded(manager, make_tournament) -> None:
    tournament = make_tournament(manager, entrants=0)

    registration = manager.register_entrant(tournament.id, 101, 201, 301)

    assert registration.id is not None
    assert registration.category_id == tournament.category_id
    (stored,) = manager.list_registrations(tournament.id)
    assert (stored.competitor_id, stored.club_id, stored.robot_id) == (101, 201, 301)


def test_duplicate_competitor_rejected(manager, make_tournament) -> None:
    tournament = make_tournament(manager, entrants=1)

    with pytest.raises(AlreadyRegisteredError):
        manager.register_entrant(tournament.id, 101, 250, 350)

    assert len(manager.list_registrations(tournament.id)) == 1


def test_duplicate_club_rejected(manager, make_tournament) -> None:
    tournament = make_tournament(manager, entrants=1)

    with pytest.raises(AlreadyRegisteredError) as exc_info:
        manager.register_entrant(tournament.id, 150, 201, 350)

    assert exc_info.value.kind == "already_registered"
    assert len(manager.list_registrations(tournament.id)) == 1


def test_full_tournament_rejects_registration(manager, make_tournament) -> None:
    tournament = make_tournament(manager, entrants=8, max_participants=8)

    with pytest.raises(InvalidStateError):
        manager.register_entrant(tournament.id, 150, 250, 350)


def test_started_tournament_rejects_registration(manager, make_tournament) -> None:
    tournament = make_tournament(manager, entrants=4)
    manager.start_tournament(tournament.id)

    with pytest.raises(InvalidStateError):
        manager.register_entrant(tournament.id, 150, 250, 350)


def test_unknown_tournament(manager) -> None:
    with pytest.raises(NotFoundError):
        manager.register_entrant(4040, 101, 201, 301)


def test_finished_competitors_are_blocked(manager, make_tournament) -> None:
    first = make_tournament(manager, entrants=2)
    manager.start_tournament(first.id)
    finish_round(manager, first.id, 1)
    second = make_tournament(manager, entrants=0, name="Autumn Sumo Cup")

    with pytest.raises(RegistrationBlockedError) as exc_info:
        manager.register_entrant(second.id, 101, 201, 301)

    assert "blocked_until" in exc_info.value.details
    # Someone who did not take part is unaffected
    manager.register_entrant(second.id, 150, 250, 350)


@pytest.mark.unit
def test_block_window_expires(manager) -> None:
    now = datetime.now(timezone.utc)
    window = timedelta(days=manager.config.registration.post_tournament_block_days)

    assert manager._blocked_until(None) is None
    assert manager._blocked_until(now - window - timedelta(minutes=1)) is None
    assert manager._blocked_until(now - timedelta(days=1)) is not None
    # Naive timestamps are read as UTC
    assert manager._blocked_until((now - timedelta(days=1)).replace(tzinfo=None)) is not None


def test_robot_of_another_competitor_rejected(manager, make_tournament) -> None:
    tournament = make_tournament(manager, entrants=0)
    manager.register_entrant(tournament.id, 101, 201, 500)

    with pytest.raises(RobotOwnershipError) as exc_info:
        manager.register_entrant(tournament.id, 102, 202, 500)

    assert exc_info.value.details == {"robot_id": 500, "competitor_id": 102}
    assert [r.competitor_id for r in manager.list_registrations(tournament.id)] == [101]


def test_robot_owner_carries_over_between_tournaments(manager, make_tournament) -> None:
    first = make_tournament(manager, entrants=0)
    second = make_tournament(manager, entrants=0, name="Autumn Sumo Cup")
    manager.register_entrant(first.id, 101, 201, 500)

    # The owner may bring the same robot again
    manager.register_entrant(second.id, 101, 201, 500)
    with pytest.raises(RobotOwnershipError):
        manager.register_entrant(second.id, 102, 202, 500)
