from datetime import datetime, timedelta

import pytest

from gym_arena.core.exceptions import (
    AlreadyJoined, BracketIncomplete, InvalidConfiguration, NotAuthorized, TournamentFull,
    TournamentNotFound, TournamentNotOpen,
)
from gym_arena.models import tournament as tournament_model
from gym_arena.models.match import Match
from gym_arena.schemas import tournament_schemas
from gym_arena.schemas.auth_schemas import TokenData
from gym_arena.services import match_store, tournament_service

MEMBER = TokenData(user_id="member-1")


class TestCreateTournament:

    def test_creates_every_match_shell(self, db, make_tournament):
        tournament = make_tournament(8)

        assert tournament.status == tournament_model.STATUS_UPCOMING
        matches = db.query(Match).filter(Match.tournament_id == tournament.id).all()
        assert len(matches) == 7
        assert sorted((m.round_number, m.match_number) for m in matches) == [
            (1, 1), (1, 2), (1, 3), (1, 4), (2, 1), (2, 2), (3, 1),
        ]
        assert all(m.player_1_id is None and m.player_2_id is None and m.winner_id is None for m in matches)

    def test_members_cannot_create(self, db, make_tournament):
        with pytest.raises(NotAuthorized):
            make_tournament(8, user=MEMBER)
        assert tournament_service.list_tournaments(db) == []

    def test_rejects_unsupported_size(self, db, admin):
        # Bypasses the schema validator to reach the service check
        tournament_in = tournament_schemas.TournamentCreate.model_construct(
            name="Odd", description=None, start_date=datetime.utcnow(), max_participants=6,
        )
        with pytest.raises(InvalidConfiguration):
            tournament_service.create_tournament(db, tournament_in, admin)

    def test_schema_rejects_unsupported_size(self):
        with pytest.raises(ValueError):
            tournament_schemas.TournamentCreate(name="Odd", start_date=datetime.utcnow(), max_participants=12)

    def test_schema_rejects_blank_name(self):
        with pytest.raises(ValueError):
            tournament_schemas.TournamentCreate(name="   ", start_date=datetime.utcnow(), max_participants=4)


class TestJoinTournament:

    def test_seeds_follow_join_order_and_fill_round_one(self, db, make_tournament):
        tournament = make_tournament(8)
        for user_id in ("ana", "ben", "cleo"):
            tournament_service.join_tournament(db, tournament.id, user_id)

        seeds = [(p["user_id"], p["seed_number"]) for p in tournament_service.list_participants(db, tournament.id)]
        assert seeds == [("ana", 1), ("ben", 2), ("cleo", 3)]

        first = match_store.find_match(db, tournament.id, 1, 1)
        second = match_store.find_match(db, tournament.id, 1, 2)
        assert (first.player_1_id, first.player_2_id) == ("ana", "ben")
        assert (second.player_1_id, second.player_2_id) == ("cleo", None)

    def test_cannot_join_twice(self, db, make_tournament):
        tournament = make_tournament(4)
        tournament_service.join_tournament(db, tournament.id, "ana")
        with pytest.raises(AlreadyJoined):
            tournament_service.join_tournament(db, tournament.id, "ana")
        assert tournament_service.participant_count(db, tournament.id) == 1

    def test_cannot_join_full_tournament(self, db, make_tournament, enroll):
        tournament = make_tournament(4)
        enroll(tournament)
        with pytest.raises(TournamentFull):
            tournament_service.join_tournament(db, tournament.id, "late-comer")

    def test_cannot_join_started_tournament(self, db, active_tournament):
        tournament = active_tournament(4)
        with pytest.raises(TournamentNotOpen):
            tournament_service.join_tournament(db, tournament.id, "late-comer")

    def test_cannot_join_completed_tournament(self, db, make_tournament):
        tournament = make_tournament(4)
        tournament.status = tournament_model.STATUS_COMPLETED
        db.commit()
        with pytest.raises(TournamentNotOpen):
            tournament_service.join_tournament(db, tournament.id, "late-comer")

    def test_unknown_tournament(self, db):
        with pytest.raises(TournamentNotFound):
            tournament_service.join_tournament(db, "missing", "ana")


class TestStartTournament:

    def test_start_requires_full_enrollment(self, db, admin, make_tournament, enroll):
        tournament = make_tournament(8)
        enroll(tournament, 5)
        with pytest.raises(BracketIncomplete):
            tournament_service.start_tournament(db, tournament.id, admin)

    def test_start_activates(self, db, admin, make_tournament, enroll):
        tournament = make_tournament(4)
        enroll(tournament)
        started = tournament_service.start_tournament(db, tournament.id, admin)
        assert started.status == tournament_model.STATUS_ACTIVE

    def test_creator_without_admin_role_is_organizer(self, db, admin, make_tournament, enroll):
        tournament = make_tournament(4)
        tournament.created_by = "coach-7"
        db.commit()
        enroll(tournament)
        started = tournament_service.start_tournament(db, tournament.id, TokenData(user_id="coach-7"))
        assert started.status == tournament_model.STATUS_ACTIVE

    def test_members_cannot_start(self, db, make_tournament, enroll):
        tournament = make_tournament(4)
        enroll(tournament)
        with pytest.raises(NotAuthorized):
            tournament_service.start_tournament(db, tournament.id, MEMBER)

    def test_cannot_start_twice(self, db, admin, active_tournament):
        tournament = active_tournament(4)
        with pytest.raises(TournamentNotOpen):
            tournament_service.start_tournament(db, tournament.id, admin)


class TestListTournaments:

    def test_counts_and_status_filter(self, db, make_tournament, enroll, active_tournament):
        open_one = make_tournament(8, name="Open")
        enroll(open_one, 3)
        running = active_tournament(4)

        rows = {t.id: count for t, count in tournament_service.list_tournaments(db)}
        assert rows == {open_one.id: 3, running.id: 4}

        active = tournament_service.list_tournaments(db, status=tournament_model.STATUS_ACTIVE)
        assert [t.id for t, _ in active] == [running.id]

    def test_participant_names_come_from_profiles(self, db, make_tournament, profiles):
        tournament = make_tournament(4)
        profiles("ana")
        tournament_service.join_tournament(db, tournament.id, "ana")
        tournament_service.join_tournament(db, tournament.id, "ghost")

        names = {p["user_id"]: p["full_name"] for p in tournament_service.list_participants(db, tournament.id)}
        assert names == {"ana": "Name of ana", "ghost": None}
