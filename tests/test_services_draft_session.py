"""
Tests for DraftSessionService

Covers the session state machine end to end against the in-memory store:
- Session scheduling, updates and deletion
- Activation, pause, resume and completion
- Timer checks: activation, auto-draft, skips, stall detection, end time
- Human picks and turn advancement through a full draft
"""
import pytest
from datetime import timedelta

from services.draft_session_service import draft_session_service
from models.results import ErrorKind
from tests.factories import (
    ADMIN_ID,
    SEASON_ID,
    CardFactory,
    DraftSessionFactory,
    now_utc,
    seed_league,
)


def session_row(store, session_id="session-1"):
    return next(row for row in store.rows('draft_sessions') if row['id'] == session_id)


def team_balance(store, team_id):
    return next(row for row in store.rows('teams') if row['id'] == team_id)['cubucks_balance']


def notifications(store, function='notify_all_users_draft'):
    return [args['p_message'] for args in store.calls_to('rpc', function)]


def seed_cards(store, *names):
    for index, name in enumerate(names, start=1):
        store.seed('card_pools', CardFactory.row(f"pool-{index}", name, elo=2000.0 - index * 10))


class TestSessionScheduling:
    """Creating, updating and deleting sessions."""

    @pytest.mark.asyncio
    async def test_create_requires_admin(self, store):
        seed_league(store)

        result = await draft_session_service.create_draft_session(3, 24, now_utc(), None, "captain-team-a")

        assert not result.success
        assert result.error_kind == ErrorKind.NOT_AUTHORIZED

    @pytest.mark.asyncio
    async def test_create_requires_authentication(self, store):
        result = await draft_session_service.create_draft_session(3, 24, now_utc(), None, None)

        assert result.error_kind == ErrorKind.NOT_AUTHENTICATED

    @pytest.mark.asyncio
    async def test_create_requires_draft_order(self, store):
        seed_league(store)
        store.tables['draft_order'] = []

        result = await draft_session_service.create_draft_session(3, 24, now_utc(), None, ADMIN_ID)

        assert not result.success
        assert "No draft order found" in result.error

    @pytest.mark.asyncio
    async def test_create_schedules_session(self, store):
        seed_league(store)
        start = now_utc() + timedelta(hours=2)

        result = await draft_session_service.create_draft_session(3, 12, start, start + timedelta(days=3), ADMIN_ID)

        assert result.success
        assert result.message == "Draft session scheduled"
        assert result.data.status == "scheduled"
        assert result.data.season_id == SEASON_ID
        assert result.data.started_by == ADMIN_ID
        assert len(store.rows('draft_sessions')) == 1

    @pytest.mark.asyncio
    async def test_create_rejects_second_open_session(self, store):
        seed_league(store)
        store.seed('draft_sessions', DraftSessionFactory.row(status="paused"))

        result = await draft_session_service.create_draft_session(3, 12, now_utc(), None, ADMIN_ID)

        assert result.error_kind == ErrorKind.CONFLICT
        assert "(status: paused)" in result.error
        assert len(store.rows('draft_sessions')) == 1

    @pytest.mark.asyncio
    async def test_completed_session_does_not_block_a_new_one(self, store):
        seed_league(store)
        store.seed('draft_sessions', DraftSessionFactory.row(status="completed"))

        result = await draft_session_service.create_draft_session(3, 12, now_utc(), None, ADMIN_ID)

        assert result.success

    @pytest.mark.asyncio
    @pytest.mark.parametrize("rounds,hours,message", [
        (0, 24, "Total rounds must be between 1 and 999"),
        (1000, 24, "Total rounds must be between 1 and 999"),
        (3, 0, "Hours per pick must be greater than 0"),
        (3, 169, "at most 168 (1 week)"),
    ])
    async def test_create_validates_settings(self, store, rounds, hours, message):
        seed_league(store)

        result = await draft_session_service.create_draft_session(rounds, hours, now_utc(), None, ADMIN_ID)

        assert result.error_kind == ErrorKind.VALIDATION
        assert message in result.error
        assert store.rows('draft_sessions') == []

    @pytest.mark.asyncio
    async def test_create_rejects_end_before_start(self, store):
        seed_league(store)
        start = now_utc()

        result = await draft_session_service.create_draft_session(3, 12, start, start - timedelta(hours=1), ADMIN_ID)

        assert result.error == "End time must be after the start time"

    @pytest.mark.asyncio
    async def test_update_resets_deadline_from_now(self, store):
        seed_league(store)
        store.seed('draft_sessions', DraftSessionFactory.row(current_pick_deadline=now_utc() + timedelta(hours=40)))

        before = now_utc()
        result = await draft_session_service.update_draft_session(
            "session-1", ADMIN_ID, hours_per_pick=2, reset_deadline=True
        )

        assert result.success
        assert result.data.hours_per_pick == 2
        deadline = result.data.current_pick_deadline
        assert before + timedelta(hours=2) <= deadline <= now_utc() + timedelta(hours=2)

    @pytest.mark.asyncio
    async def test_update_can_clear_end_time(self, store):
        seed_league(store)
        store.seed('draft_sessions', DraftSessionFactory.row(end_time=now_utc() + timedelta(days=1)))

        result = await draft_session_service.update_draft_session("session-1", ADMIN_ID, end_time=None)

        assert result.success
        assert session_row(store)['end_time'] is None

    @pytest.mark.asyncio
    async def test_update_unknown_session(self, store):
        seed_league(store)

        result = await draft_session_service.update_draft_session("missing", ADMIN_ID, total_rounds=4)

        assert result.error == "Draft session not found"

    @pytest.mark.asyncio
    async def test_delete_only_scheduled(self, store):
        seed_league(store)
        store.seed('draft_sessions', DraftSessionFactory.row(status="active"))

        result = await draft_session_service.delete_draft_session("session-1", ADMIN_ID)

        assert not result.success
        assert "Can only delete scheduled draft sessions" in result.error
        assert store.rows('draft_sessions')

    @pytest.mark.asyncio
    async def test_delete_scheduled(self, store):
        seed_league(store)
        store.seed('draft_sessions', DraftSessionFactory.row(status="scheduled"))

        result = await draft_session_service.delete_draft_session("session-1", ADMIN_ID)

        assert result.success
        assert store.rows('draft_sessions') == []


class TestLifecycle:
    """Activation, pause, resume and completion."""

    @pytest.mark.asyncio
    async def test_activate_sets_clock_and_notifies(self, store):
        seed_league(store)
        store.seed('draft_sessions', DraftSessionFactory.row(status="scheduled"))

        result = await draft_session_service.activate_draft("session-1")

        assert result.success
        assert result.message == "Draft has been activated!"
        row = session_row(store)
        assert row['status'] == "active"
        assert row['current_on_clock_team_id'] == "team-a"
        assert row['current_pick_deadline'] is not None
        assert notifications(store) == ["The draft has started! Season 2 draft is now live."]

        team_messages = notifications(store, 'notify_draft_team_roles')
        assert "is ON THE CLOCK! You have 1 hours to make your pick." in team_messages[0]
        assert "is ON DECK!" in team_messages[1]

    @pytest.mark.asyncio
    async def test_activate_rejects_completed_session(self, store):
        seed_league(store)
        store.seed('draft_sessions', DraftSessionFactory.row(status="completed"))

        result = await draft_session_service.activate_draft("session-1")

        assert result.error == "Cannot activate a draft with status: completed"

    @pytest.mark.asyncio
    async def test_activate_without_draft_order(self, store):
        seed_league(store)
        store.tables['draft_order'] = []
        store.seed('draft_sessions', DraftSessionFactory.row(status="scheduled"))

        result = await draft_session_service.activate_draft("session-1")

        assert "Ensure draft order is set" in result.error
        assert session_row(store)['status'] == "scheduled"

    @pytest.mark.asyncio
    async def test_pause_active_session(self, store):
        seed_league(store)
        store.seed('draft_sessions', DraftSessionFactory.row(
            status="active", current_pick_deadline=now_utc() + timedelta(hours=1)
        ))

        result = await draft_session_service.pause_draft("session-1", ADMIN_ID)

        assert result.success
        assert result.data == {'updated': True}
        assert session_row(store)['status'] == "paused"
        assert session_row(store)['current_pick_deadline'] is None

    @pytest.mark.asyncio
    async def test_pause_non_active_session_is_a_successful_noop(self, store):
        seed_league(store)
        store.seed('draft_sessions', DraftSessionFactory.row(status="scheduled"))

        result = await draft_session_service.pause_draft("session-1", ADMIN_ID)

        assert result.success
        assert result.data == {'updated': False}
        assert session_row(store)['status'] == "scheduled"
        assert notifications(store) == []

    @pytest.mark.asyncio
    async def test_pause_requires_admin(self, store):
        seed_league(store)
        store.seed('draft_sessions', DraftSessionFactory.row(status="active"))

        result = await draft_session_service.pause_draft("session-1", "captain-team-a")

        assert result.error_kind == ErrorKind.NOT_AUTHORIZED
        assert session_row(store)['status'] == "active"

    @pytest.mark.asyncio
    async def test_resume_recomputes_turn(self, store):
        seed_league(store)
        store.seed('draft_sessions', DraftSessionFactory.row(status="paused"))
        store.seed('team_draft_picks', {
            'team_id': 'team-a', 'draft_session_id': 'session-1',
            'card_pool_id': 'pool-9', 'card_id': 'card-x', 'card_name': 'X', 'pick_number': 1,
        })

        result = await draft_session_service.resume_draft("session-1", ADMIN_ID)

        assert result.success
        assert session_row(store)['status'] == "active"
        assert session_row(store)['current_on_clock_team_id'] == "team-b"

    @pytest.mark.asyncio
    async def test_complete_clears_clock(self, store):
        seed_league(store)
        store.seed('draft_sessions', DraftSessionFactory.row(
            status="active", current_on_clock_team_id="team-a",
            current_pick_deadline=now_utc() + timedelta(hours=1)
        ))

        result = await draft_session_service.complete_draft("session-1", ADMIN_ID)

        assert result.success
        row = session_row(store)
        assert row['status'] == "completed"
        assert row['current_on_clock_team_id'] is None
        assert row['current_pick_deadline'] is None
        assert notifications(store) == ["The draft has been completed by an admin."]

    @pytest.mark.asyncio
    async def test_captain_cannot_complete(self, store):
        seed_league(store)
        store.seed('draft_sessions', DraftSessionFactory.row(status="active", current_on_clock_team_id="team-a"))

        result = await draft_session_service.complete_draft("session-1", "captain-team-a")

        assert not result.success
        assert result.error_kind == ErrorKind.NOT_AUTHORIZED
        assert session_row(store)['status'] == "active"
        assert notifications(store) == []

    @pytest.mark.asyncio
    async def test_anonymous_pause_leaves_session_running(self, store):
        seed_league(store)
        store.seed('draft_sessions', DraftSessionFactory.row(
            status="active", current_pick_deadline=now_utc() + timedelta(hours=1)
        ))

        result = await draft_session_service.pause_draft("session-1", None)

        assert not result.success
        assert result.error_kind == ErrorKind.NOT_AUTHENTICATED
        assert session_row(store)['status'] == "active"
        assert session_row(store)['current_pick_deadline'] is not None

    @pytest.mark.asyncio
    async def test_advance_without_active_session(self, store):
        seed_league(store)

        result = await draft_session_service.advance_draft()

        assert result.success
        assert result.data == {'completed': False}


class TestTimer:
    """check_draft_timer outcomes."""

    @pytest.mark.asyncio
    async def test_no_session_is_noop(self, store):
        seed_league(store)

        result = await draft_session_service.check_draft_timer()

        assert result.is_noop

    @pytest.mark.asyncio
    async def test_repeated_checks_before_deadline_do_nothing(self, store):
        seed_league(store)
        seed_cards(store, "Lightning Bolt")
        store.seed('draft_sessions', DraftSessionFactory.row(
            current_on_clock_team_id="team-a", current_pick_deadline=now_utc() + timedelta(hours=1)
        ))

        first = await draft_session_service.check_draft_timer()
        second = await draft_session_service.check_draft_timer()

        assert first.is_noop and second.is_noop
        assert store.rows('team_draft_picks') == []
        assert store.calls_to('rpc', 'spend_cubucks_on_draft') == []

    @pytest.mark.asyncio
    async def test_scheduled_session_not_started_yet(self, store):
        seed_league(store)
        store.seed('draft_sessions', DraftSessionFactory.row(
            status="scheduled", start_time=now_utc() + timedelta(hours=3)
        ))

        result = await draft_session_service.check_draft_timer()

        assert result.is_noop
        assert session_row(store)['status'] == "scheduled"

    @pytest.mark.asyncio
    async def test_activates_once_then_idles(self, store):
        seed_league(store)
        store.seed('draft_sessions', DraftSessionFactory.row(status="scheduled"))

        first = await draft_session_service.check_draft_timer()
        second = await draft_session_service.check_draft_timer()

        assert first.action == "activated"
        assert second.is_noop
        assert len(notifications(store)) == 1

    @pytest.mark.asyncio
    async def test_end_time_completes_draft(self, store):
        seed_league(store)
        store.seed('draft_sessions', DraftSessionFactory.row(
            end_time=now_utc() - timedelta(minutes=1),
            current_on_clock_team_id="team-a",
        ))

        result = await draft_session_service.check_draft_timer()

        assert result.action == "completed"
        assert result.message == "Draft has ended (deadline reached)."
        assert session_row(store)['status'] == "completed"

    @pytest.mark.asyncio
    async def test_expired_pick_is_auto_drafted(self, store):
        seed_league(store)
        seed_cards(store, "Lightning Bolt", "Counterspell")
        store.seed('draft_sessions', DraftSessionFactory.row(
            current_on_clock_team_id="team-a",
            current_pick_deadline=now_utc() - timedelta(minutes=1),
            consecutive_skipped_picks=1,
        ))

        result = await draft_session_service.check_draft_timer()

        assert result.action == "auto_drafted"
        assert result.message == "Auto-drafted Lightning Bolt for team team-a."

        picks = store.rows('team_draft_picks')
        assert len(picks) == 1
        assert picks[0]['card_name'] == "Lightning Bolt"
        assert picks[0]['drafted_by'] is None
        assert picks[0]['draft_session_id'] == "session-1"
        assert team_balance(store, 'team-a') == 19

        row = session_row(store)
        assert row['current_on_clock_team_id'] == "team-b"
        assert row['consecutive_skipped_picks'] == 0
        assert len(store.rows('auto_draft_log')) == 1

    @pytest.mark.asyncio
    async def test_manual_queue_beats_algorithm(self, store):
        seed_league(store)
        seed_cards(store, "Lightning Bolt", "Counterspell")
        store.seed('team_draft_queue', {
            'team_id': 'team-a', 'card_pool_id': 'pool-2', 'card_id': 'card-counterspell',
            'card_name': 'Counterspell', 'position': 1, 'pinned': True,
        })
        store.seed('draft_sessions', DraftSessionFactory.row(
            current_on_clock_team_id="team-a",
            current_pick_deadline=now_utc() - timedelta(minutes=1),
        ))

        result = await draft_session_service.check_draft_timer()

        assert result.action == "auto_drafted"
        assert store.rows('team_draft_picks')[0]['card_name'] == "Counterspell"
        assert store.rows('team_draft_queue') == []
        assert store.rows('auto_draft_log')[0]['pick_source'] == "manual_queue"

    @pytest.mark.asyncio
    async def test_full_round_of_skips_completes_draft(self, store):
        seed_league(store)
        store.seed('draft_sessions', DraftSessionFactory.row(
            total_rounds=3,
            current_on_clock_team_id="team-a",
            current_pick_deadline=now_utc() - timedelta(minutes=1),
        ))

        first = await draft_session_service.check_draft_timer()

        assert first.action == "skipped"
        assert "No available cards in the pool" in first.message
        assert first.error == "Auto-draft for team-a failed and was skipped."
        assert session_row(store)['consecutive_skipped_picks'] == 1
        assert session_row(store)['current_on_clock_team_id'] == "team-b"

        second = await draft_session_service.check_draft_timer(now=now_utc() + timedelta(hours=2))

        assert second.action == "completed"
        assert second.message == "Draft ended after a full round of skipped picks."
        row = session_row(store)
        assert row['status'] == "completed"
        assert row['consecutive_skipped_picks'] == 2

        skipped = store.rows('team_draft_picks')
        assert [pick['card_id'] for pick in skipped] == ["skipped-pick", "skipped-pick"]
        assert [pick['team_id'] for pick in skipped] == ["team-a", "team-b"]
        assert [pick['pick_number'] for pick in skipped] == [1, 2]

    @pytest.mark.asyncio
    async def test_stalled_session_completes_before_auto_draft(self, store):
        seed_league(store)
        seed_cards(store, "Lightning Bolt")
        store.seed('draft_sessions', DraftSessionFactory.row(
            consecutive_skipped_picks=2,
            current_on_clock_team_id="team-a",
            current_pick_deadline=now_utc() + timedelta(hours=1),
        ))

        result = await draft_session_service.check_draft_timer()

        assert result.action == "completed"
        assert store.rows('team_draft_picks') == []

    @pytest.mark.asyncio
    async def test_store_failure_is_reported(self, store):
        seed_league(store)
        store.fail('select', 'draft_sessions')

        result = await draft_session_service.check_draft_timer()

        assert result.action == "error"
        assert "failed" in result.error


class TestHumanPicks:
    """draft_card and turn advancement."""

    @pytest.fixture
    def league(self, store):
        seed_league(store)
        seed_cards(store, "Lightning Bolt", "Counterspell", "Swords to Plowshares", "Llanowar Elves", "Dark Ritual")
        store.seed('draft_sessions', DraftSessionFactory.row(
            total_rounds=2,
            current_on_clock_team_id="team-a",
            current_pick_deadline=now_utc() + timedelta(hours=1),
        ))
        return store

    @pytest.mark.asyncio
    async def test_two_teams_two_rounds_completes_on_fourth_pick(self, league):
        turns = [
            ("team-a", "pool-1"),
            ("team-b", "pool-2"),
            ("team-a", "pool-3"),
            ("team-b", "pool-4"),
        ]

        results = []
        for team_id, card in turns:
            results.append(await draft_session_service.draft_card(team_id, card, f"captain-{team_id}"))

        assert all(result.success for result in results)
        assert [result.data['completed'] for result in results] == [False, False, False, True]
        assert results[0].message == "Acquired Lightning Bolt for 1 Cubucks!"

        row = session_row(league)
        assert row['status'] == "completed"
        assert row['current_on_clock_team_id'] is None
        assert row['current_pick_deadline'] is None

        picks = league.rows('team_draft_picks')
        assert [(p['team_id'], p['pick_number']) for p in picks] == [
            ("team-a", 1), ("team-b", 1), ("team-a", 2), ("team-b", 2)
        ]
        assert all(p['draft_session_id'] == "session-1" for p in picks)
        assert team_balance(league, 'team-a') == 18
        assert team_balance(league, 'team-b') == 18
        assert "The draft is complete! 4 total picks were made across 2 rounds." in notifications(league)

    @pytest.mark.asyncio
    async def test_pick_moves_clock_and_announces_round(self, league):
        result = await draft_session_service.draft_card("team-a", "pool-1", "captain-team-a")

        assert result.success
        assert session_row(league)['current_on_clock_team_id'] == "team-b"
        clock_messages = notifications(league, 'notify_draft_team_roles')
        assert any("(Round 1)" in message for message in clock_messages)

    @pytest.mark.asyncio
    async def test_pick_number_counts_only_this_session(self, league):
        league.seed('team_draft_picks', {
            'team_id': 'team-a', 'draft_session_id': 'session-0',
            'card_pool_id': 'pool-old', 'card_id': 'card-old', 'card_name': 'Old Pick', 'pick_number': 1,
        })

        result = await draft_session_service.draft_card("team-a", "pool-1", "captain-team-a")

        assert result.success
        pick = next(p for p in league.rows('team_draft_picks') if p['draft_session_id'] == "session-1")
        assert pick['pick_number'] == 1

    @pytest.mark.asyncio
    async def test_not_your_turn(self, league):
        result = await draft_session_service.draft_card("team-b", "pool-1", "captain-team-b")

        assert result.error_kind == ErrorKind.VALIDATION
        assert result.error.startswith("It is not your turn.")
        assert league.rows('team_draft_picks') == []

    @pytest.mark.asyncio
    async def test_non_member_rejected(self, league):
        result = await draft_session_service.draft_card("team-a", "pool-1", "captain-team-b")

        assert result.error_kind == ErrorKind.NOT_AUTHORIZED

    @pytest.mark.asyncio
    async def test_inactive_draft(self, league):
        session_row(league)['status'] = "paused"

        result = await draft_session_service.draft_card("team-a", "pool-1", "captain-team-a")

        assert result.error == "The draft is not active right now."

    @pytest.mark.asyncio
    async def test_already_drafted_card(self, league):
        league.seed('team_draft_picks', {
            'team_id': 'team-b', 'card_pool_id': 'pool-1', 'card_id': 'card-lightning-bolt',
            'card_name': 'Lightning Bolt', 'pick_number': 1,
        })

        result = await draft_session_service.draft_card("team-a", "pool-1", "captain-team-a")

        assert result.error_kind == ErrorKind.CONFLICT
        assert result.error == "This specific card has already been drafted."
        assert league.calls_to('rpc', 'spend_cubucks_on_draft') == []

    @pytest.mark.asyncio
    async def test_insufficient_cubucks(self, league):
        next(row for row in league.rows('teams') if row['id'] == 'team-a')['cubucks_balance'] = 0

        result = await draft_session_service.draft_card("team-a", "pool-1", "captain-team-a")

        assert result.error == "Insufficient Cubucks! Need 1, you have 0"

    @pytest.mark.asyncio
    async def test_unknown_card(self, league):
        result = await draft_session_service.draft_card("team-a", "pool-404", "captain-team-a")

        assert result.error_kind == ErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_drafted_card_leaves_every_queue(self, league):
        league.seed('team_draft_queue', {
            'team_id': 'team-b', 'card_pool_id': 'pool-1', 'card_id': 'card-lightning-bolt',
            'card_name': 'Lightning Bolt', 'position': 1,
        })

        result = await draft_session_service.draft_card("team-a", "pool-1", "captain-team-a")

        assert result.success
        assert league.rows('team_draft_queue') == []

    @pytest.mark.asyncio
    async def test_draft_ends_when_every_team_is_broke(self, league):
        for row in league.rows('teams'):
            row['cubucks_balance'] = 1

        await draft_session_service.draft_card("team-a", "pool-1", "captain-team-a")
        result = await draft_session_service.draft_card("team-b", "pool-2", "captain-team-b")

        assert result.data['completed'] is True
        assert session_row(league)['status'] == "completed"
