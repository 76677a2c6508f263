"""
Tests for DraftOrderService

Covers draft settings, season standings, draft order generation (lottery
and standings based), regeneration, and draft status derivation.
"""
import random

import pytest

from services.draft_order_service import draft_order_service
from models.results import ErrorKind
from tests.factories import ADMIN_ID, SeasonFactory, TeamFactory, UserFactory

TEAMS = ("team-a", "team-b", "team-c", "team-d")


def seed_teams(store, team_ids=TEAMS):
    store.seed('users', UserFactory.admin().to_dict())
    for team_id in team_ids:
        store.seed('teams', TeamFactory.row(team_id))


def match(home, away, winner, status="completed"):
    return {
        'week_id': 'week-1',
        'home_team_id': home,
        'away_team_id': away,
        'winner_team_id': winner,
        'status': status,
    }


@pytest.fixture
def second_season(store):
    """Season 1 finished with a > b > c > d; season 2 is active."""
    seed_teams(store)
    store.seed('seasons',
               SeasonFactory.row(id="season-1", season_number=1, is_active=False),
               SeasonFactory.row(id="season-2", season_number=2))
    store.seed('schedule_weeks', {'id': 'week-1', 'season_id': 'season-1'})
    store.seed('matches',
               match('team-a', 'team-b', 'team-a'),
               match('team-c', 'team-a', 'team-a'),
               match('team-a', 'team-d', 'team-a'),
               match('team-b', 'team-c', 'team-b'),
               match('team-d', 'team-b', 'team-b'),
               match('team-c', 'team-d', 'team-c'),
               match('team-d', 'team-c', None, status="scheduled"))
    return store


class TestStandings:
    """Season standings from completed matches."""

    @pytest.mark.asyncio
    async def test_records_and_percentages(self, second_season):
        result = await draft_order_service.get_season_standings("season-1")

        assert result.success
        records = {s.team_id: (s.wins, s.losses, s.win_pct) for s in result.data}
        assert records == {
            'team-a': (3, 0, 100.0),
            'team-b': (2, 1, 66.67),
            'team-c': (1, 2, 33.33),
            'team-d': (0, 3, 0.0),
        }
        assert result.data[0].team_id == "team-a"

    @pytest.mark.asyncio
    async def test_season_without_weeks(self, store):
        seed_teams(store)

        result = await draft_order_service.get_season_standings("season-9")

        assert result.success
        assert all(s.wins == 0 and s.losses == 0 and s.win_pct == 0 for s in result.data)
        assert len(result.data) == len(TEAMS)


class TestGenerateDraftOrder:
    """Draft order generation."""

    @pytest.mark.asyncio
    async def test_worst_record_picks_first(self, second_season):
        result = await draft_order_service.generate_draft_order("season-2", ADMIN_ID, random.Random(3))

        assert result.success
        assert [e.team_id for e in result.data] == ["team-d", "team-c", "team-b", "team-a"]
        assert [e.pick_position for e in result.data] == [1, 2, 3, 4]
        assert not any(e.is_lottery_winner for e in result.data)
        assert result.message == (
            "Draft order generated for Season 2 based on Season 1 standings. 4 teams ordered."
        )
        assert len(second_season.rows('draft_order')) == 4

    @pytest.mark.asyncio
    async def test_first_season_is_pure_lottery(self, store):
        seed_teams(store)
        store.seed('seasons', SeasonFactory.row(id="season-1", season_number=1))

        result = await draft_order_service.generate_draft_order("season-1", ADMIN_ID, random.Random(11))

        assert result.success
        entries = result.data
        assert sorted(e.lottery_number for e in entries) == [1, 2, 3, 4]
        assert all(e.pick_position == e.lottery_number for e in entries)
        assert all(e.is_lottery_winner for e in entries)
        assert "based on none (Season 1) standings" in result.message

    @pytest.mark.asyncio
    async def test_lottery_range_follows_max_teams_setting(self, store):
        seed_teams(store)
        store.seed('seasons', SeasonFactory.row(id="season-1", season_number=1))
        store.seed('draft_settings', {'setting_key': 'max_teams', 'setting_value': '12'})

        result = await draft_order_service.generate_draft_order("season-1", ADMIN_ID, random.Random(5))

        numbers = [e.lottery_number for e in result.data]
        assert len(set(numbers)) == 4
        assert all(1 <= n <= 12 for n in numbers)
        assert numbers == sorted(numbers)

    @pytest.mark.asyncio
    async def test_existing_order_is_a_conflict(self, second_season):
        await draft_order_service.generate_draft_order("season-2", ADMIN_ID)

        result = await draft_order_service.generate_draft_order("season-2", ADMIN_ID)

        assert result.error_kind == ErrorKind.CONFLICT
        assert "Use regenerate" in result.error
        assert len(second_season.rows('draft_order')) == 4

    @pytest.mark.asyncio
    async def test_regenerate_replaces_order(self, second_season):
        await draft_order_service.generate_draft_order("season-2", ADMIN_ID)
        first_ids = {row['id'] for row in second_season.rows('draft_order')}

        result = await draft_order_service.regenerate_draft_order("season-2", ADMIN_ID)

        assert result.success
        rows = second_season.rows('draft_order')
        assert len(rows) == 4
        assert not first_ids & {row['id'] for row in rows}

    @pytest.mark.asyncio
    async def test_requires_admin(self, second_season):
        second_season.seed('users', UserFactory.create(id="someone").to_dict())

        result = await draft_order_service.generate_draft_order("season-2", "someone")

        assert result.error_kind == ErrorKind.NOT_AUTHORIZED
        assert second_season.rows('draft_order') == []

    @pytest.mark.asyncio
    async def test_anonymous_regenerate_keeps_order(self, second_season):
        await draft_order_service.generate_draft_order("season-2", ADMIN_ID)
        first_ids = {row['id'] for row in second_season.rows('draft_order')}

        result = await draft_order_service.regenerate_draft_order("season-2", None)

        assert not result.success
        assert result.error_kind == ErrorKind.NOT_AUTHENTICATED
        assert {row['id'] for row in second_season.rows('draft_order')} == first_ids

    @pytest.mark.asyncio
    async def test_no_teams(self, store):
        store.seed('users', UserFactory.admin().to_dict())
        store.seed('seasons', SeasonFactory.row(id="season-1", season_number=1))

        result = await draft_order_service.generate_draft_order("season-1", ADMIN_ID)

        assert result.error == "No teams found"

    @pytest.mark.asyncio
    async def test_unknown_season(self, store):
        seed_teams(store)

        result = await draft_order_service.generate_draft_order("season-404", ADMIN_ID)

        assert result.error_kind == ErrorKind.NOT_FOUND


class TestDraftSettings:

    @pytest.mark.asyncio
    async def test_upsert_setting(self, store):
        store.seed('users', UserFactory.admin().to_dict())

        await draft_order_service.update_draft_setting('max_teams', 10, ADMIN_ID)
        await draft_order_service.update_draft_setting('max_teams', 12, ADMIN_ID)

        assert await draft_order_service.get_draft_settings() == {'max_teams': '12'}

    @pytest.mark.asyncio
    async def test_settings_error_yields_empty(self, store):
        store.fail('select', 'draft_settings')

        assert await draft_order_service.get_draft_settings() == {}


class TestDraftStatus:
    """Status derived from the order and the pick ledger."""

    @pytest.fixture
    def ordered(self, store):
        seed_teams(store, TEAMS[:3])
        store.seed('seasons', SeasonFactory.row())
        for position, team_id in enumerate(TEAMS[:3], start=1):
            store.seed('draft_order', {
                'season_id': 'season-2', 'team_id': team_id,
                'pick_position': position, 'lottery_number': position,
            })
        return store

    def add_pick(self, store, team_id, session_id="session-1"):
        store.seed('team_draft_picks', {
            'team_id': team_id, 'draft_session_id': session_id,
            'card_id': 'card-x', 'card_name': 'X',
        })

    @pytest.mark.asyncio
    async def test_first_turn(self, ordered):
        status = await draft_order_service.get_draft_status("session-1")

        assert status.on_the_clock.team_id == "team-a"
        assert status.on_deck.team_id == "team-b"
        assert status.current_round == 1
        assert status.total_teams == 3
        assert status.on_the_clock.team_name == "Team team-a"

    @pytest.mark.asyncio
    async def test_last_team_of_round_has_first_team_on_deck(self, ordered):
        self.add_pick(ordered, "team-a")
        self.add_pick(ordered, "team-b")

        status = await draft_order_service.get_draft_status("session-1")

        assert status.on_the_clock.team_id == "team-c"
        assert status.on_deck.team_id == "team-a"
        assert status.total_picks == 2

    @pytest.mark.asyncio
    async def test_counts_only_the_given_session(self, ordered):
        self.add_pick(ordered, "team-a", session_id="old-session")

        status = await draft_order_service.get_draft_status("session-1")

        assert status.on_the_clock.team_id == "team-a"
        assert status.total_picks == 0

    @pytest.mark.asyncio
    async def test_none_without_active_season(self, store):
        assert await draft_order_service.get_draft_status() is None
