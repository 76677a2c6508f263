"""
Draft session service for the Cube League Draft Bot

Owns the draft lifecycle:

    scheduled -> active -> [paused <-> active] -> completed

Turn order is never stored as a counter. It is recomputed from the draft
order and the pick ledger every time the draft advances, so the session row
only records the current deadline and who is on the clock.

Every public operation returns an ActionResult (or TimerCheckResult) rather
than raising. Each operation is a sequence of independent store calls with
no surrounding transaction.
"""
import logging
from datetime import datetime
from typing import Optional, List, Dict, Any

from config import get_config
from services.base_service import BaseService
from services.auth_service import auth_service
from services.season_service import season_service
from services.team_service import team_service
from services.card_pool_service import card_pool_service
from services.draft_order_service import draft_order_service
from services.draft_pick_service import draft_pick_service, ALREADY_DRAFTED
from services.draft_queue_service import draft_queue_service
from services.auto_draft_service import auto_draft_service
from services.notification_service import (
    notification_service,
    DRAFT_STARTED,
    DRAFT_ON_CLOCK,
    DRAFT_ON_DECK,
    DRAFT_COMPLETED,
)
from models.draft_session import DraftSession, DraftSessionStatus, OPEN_SESSION_STATUSES, utcnow
from models.draft_status import DraftStatus
from models.draft_pick import DraftPick
from models.results import ActionResult, ErrorKind, TimerCheckResult
from utils.draft_helpers import completion_reason
from utils.logging import set_draft_context

logger = logging.getLogger(f'{__name__}.DraftSessionService')

_UNSET: Any = object()


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class DraftSessionService(BaseService[DraftSession]):
    """
    Service for the draft session state machine.

    Features:
    - Session CRUD (admin)
    - Activation, pause, resume and completion
    - Turn advancement after every pick
    - Timer check: activation, auto-draft, skips and stall detection
    - Human draft flow (charge, record, advance)
    """

    def __init__(self):
        super().__init__(DraftSession, 'draft_sessions')
        logger.debug("DraftSessionService initialized")

    # -- queries ----------------------------------------------------------

    async def _session_for_active_season(self, statuses) -> Optional[DraftSession]:
        """Newest session of the active season in one of the given statuses."""
        season = await season_service.get_active_season()
        if not season:
            return None
        return await self.get_first([
            ('season_id', f'eq.{season.id}'),
            ('status', f"in.({','.join(statuses)})"),
            ('order', 'created_at.desc'),
        ])

    async def get_active_draft_session(self) -> Optional[DraftSession]:
        """The scheduled, active or paused session of the active season."""
        try:
            return await self._session_for_active_season(OPEN_SESSION_STATUSES)
        except Exception as e:
            logger.error(f"Error fetching active draft session: {e}")
            return None

    async def get_draft_sessions(self) -> List[DraftSession]:
        """Every session of the active season, newest first."""
        try:
            season = await season_service.get_active_season()
            if not season:
                return []
            return await self.get_all_items([('season_id', f'eq.{season.id}'), ('order', 'created_at.desc')])
        except Exception as e:
            logger.error(f"Error fetching draft sessions: {e}")
            return []

    # -- CRUD -------------------------------------------------------------

    def _validate_settings(self, total_rounds: Optional[int], hours_per_pick: Optional[float]) -> Optional[ActionResult]:
        config = get_config()
        if total_rounds is not None and not (1 <= total_rounds <= config.max_total_rounds):
            return ActionResult.fail(
                ErrorKind.VALIDATION, f"Total rounds must be between 1 and {config.max_total_rounds}"
            )
        if hours_per_pick is not None and not (0 < hours_per_pick <= config.max_hours_per_pick):
            return ActionResult.fail(
                ErrorKind.VALIDATION,
                f"Hours per pick must be greater than 0 and at most {config.max_hours_per_pick:g} (1 week)"
            )
        return None

    async def create_draft_session(
        self,
        total_rounds: int,
        hours_per_pick: float,
        start_time: datetime,
        end_time: Optional[datetime],
        user_id: Optional[str]
    ) -> ActionResult:
        """
        Schedule a draft for the active season (admin only).

        Returns:
            ActionResult with the new DraftSession as data
        """
        denied = await auth_service.verify_admin(user_id)
        if denied is not None:
            return denied

        try:
            season = await season_service.get_active_season()
            if not season:
                return ActionResult.fail(
                    ErrorKind.NOT_FOUND, "No active season found. Please activate a season first."
                )

            client = await self.get_client()
            order_row = await client.select_one('draft_order', [('season_id', f'eq.{season.id}')], columns='id')
            if not order_row:
                return ActionResult.fail(
                    ErrorKind.NOT_FOUND,
                    "No draft order found for the active season. Please generate a draft order first."
                )

            existing = await self.get_first([
                ('season_id', f'eq.{season.id}'),
                ('status', f"in.({','.join(OPEN_SESSION_STATUSES)})"),
            ])
            if existing:
                return ActionResult.fail(ErrorKind.CONFLICT, self._existing_session_message(existing.status))

            invalid = self._validate_settings(total_rounds, hours_per_pick)
            if invalid is not None:
                return invalid
            if end_time and end_time <= start_time:
                return ActionResult.fail(ErrorKind.VALIDATION, "End time must be after the start time")

            session = await self.create({
                'season_id': season.id,
                'status': DraftSessionStatus.SCHEDULED.value,
                'total_rounds': total_rounds,
                'hours_per_pick': hours_per_pick,
                'start_time': _iso(start_time),
                'end_time': _iso(end_time),
                'started_by': user_id,
            })

        except Exception as e:
            failure = self.store_failure("create draft session", e)
            if failure.error_kind == ErrorKind.CONFLICT:
                failure.error = self._existing_session_message("unknown")
            return failure

        logger.info(f"Created draft session {session.id if session else '?'} for season {season.season_number}")
        return ActionResult.ok(data=session, message="Draft session scheduled")

    @staticmethod
    def _existing_session_message(status: str) -> str:
        return (
            f"A draft session already exists for this season (status: {status}). "
            "Please complete or delete it first."
        )

    async def update_draft_session(
        self,
        session_id: str,
        user_id: Optional[str],
        total_rounds: Optional[int] = None,
        hours_per_pick: Optional[float] = None,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = _UNSET,
        reset_deadline: bool = False
    ) -> ActionResult:
        """
        Change session settings (admin only).

        Pass end_time=None to remove the end time. With reset_deadline and a
        new hours_per_pick, the current deadline restarts from now.
        """
        denied = await auth_service.verify_admin(user_id)
        if denied is not None:
            return denied

        invalid = self._validate_settings(total_rounds, hours_per_pick)
        if invalid is not None:
            return invalid

        now = utcnow()
        updates: Dict[str, Any] = {'updated_at': now.isoformat()}
        if total_rounds is not None:
            updates['total_rounds'] = total_rounds
        if hours_per_pick is not None:
            updates['hours_per_pick'] = hours_per_pick
            if reset_deadline:
                probe = DraftSession(season_id="", total_rounds=1, hours_per_pick=hours_per_pick, start_time=now)
                updates['current_pick_deadline'] = probe.next_deadline(now).isoformat()
        if start_time is not None:
            updates['start_time'] = _iso(start_time)
        if end_time is not _UNSET:
            updates['end_time'] = _iso(end_time)

        try:
            updated = await self.patch(session_id, updates)
        except Exception as e:
            return self.store_failure(f"update draft session {session_id}", e)

        if not updated:
            return ActionResult.fail(ErrorKind.NOT_FOUND, "Draft session not found")
        logger.info(f"Updated draft session {session_id}: {updates}")
        return ActionResult.ok(data=updated)

    async def delete_draft_session(self, session_id: str, user_id: Optional[str]) -> ActionResult:
        """Delete a session that has not started yet (admin only)."""
        denied = await auth_service.verify_admin(user_id)
        if denied is not None:
            return denied

        try:
            session = await self.get_by_id(session_id)
            if not session:
                return ActionResult.fail(ErrorKind.NOT_FOUND, "Draft session not found")
            if session.status != DraftSessionStatus.SCHEDULED.value:
                return ActionResult.fail(
                    ErrorKind.VALIDATION,
                    "Can only delete scheduled draft sessions. Pause or complete the active session first."
                )
            await self.delete(session_id)
        except Exception as e:
            return self.store_failure(f"delete draft session {session_id}", e)

        logger.info(f"Deleted draft session {session_id}")
        return ActionResult.ok()

    # -- lifecycle --------------------------------------------------------

    async def _announce_turn(self, status: DraftStatus, hours_per_pick: float, with_round: bool) -> None:
        """Notify the team on the clock and, if different, the team on deck."""
        clock = status.on_the_clock
        deck = status.on_deck
        round_note = f" (Round {status.current_round})" if with_round else ""

        await notification_service.notify_team_roles(
            clock.team_id,
            DRAFT_ON_CLOCK,
            f"{clock.display_name} is ON THE CLOCK! You have {hours_per_pick:g} hours to make your pick{round_note}."
        )
        if not status.on_deck_is_on_the_clock:
            await notification_service.notify_team_roles(
                deck.team_id,
                DRAFT_ON_DECK,
                f"{deck.display_name} is ON DECK! Get ready, you're picking next."
            )

    async def activate_draft(self, session_id: str) -> ActionResult:
        """
        Start (or restart) a scheduled or paused session.

        The team on the clock is recomputed from the current pick counts and
        gets a fresh deadline.
        """
        try:
            session = await self.get_by_id(session_id)
            if not session:
                return ActionResult.fail(ErrorKind.NOT_FOUND, "Draft session not found")

            if session.status not in (DraftSessionStatus.SCHEDULED.value, DraftSessionStatus.PAUSED.value):
                return ActionResult.fail(ErrorKind.VALIDATION, f"Cannot activate a draft with status: {session.status}")

            status = await draft_order_service.get_draft_status(session.id)
            if not status:
                return ActionResult.fail(
                    ErrorKind.NOT_FOUND, "Could not determine draft status. Ensure draft order is set."
                )

            now = utcnow()
            updated = await self.patch(session_id, {
                'status': DraftSessionStatus.ACTIVE.value,
                'current_pick_deadline': session.next_deadline(now).isoformat(),
                'current_on_clock_team_id': status.on_the_clock.team_id,
                'updated_at': now.isoformat(),
            })
        except Exception as e:
            return self.store_failure(f"activate draft session {session_id}", e)

        set_draft_context(session_id=session_id, team_id=status.on_the_clock.team_id)
        logger.info(f"Draft session {session_id} active; {status.on_the_clock.display_name} on the clock")

        await notification_service.notify_all_users(
            DRAFT_STARTED, f"The draft has started! {status.season_name} draft is now live."
        )
        await self._announce_turn(status, session.hours_per_pick, with_round=False)

        return ActionResult.ok(data=updated, message="Draft has been activated!")

    async def pause_draft(self, session_id: str, user_id: Optional[str]) -> ActionResult:
        """
        Pause an active draft (admin only).

        The update is filtered on status=active. A session in any other state
        is left alone and the call still succeeds, with data {"updated": False}.
        """
        denied = await auth_service.verify_admin(user_id)
        if denied is not None:
            return denied

        try:
            updated = await self.patch(
                session_id,
                {
                    'status': DraftSessionStatus.PAUSED.value,
                    'current_pick_deadline': None,
                    'updated_at': utcnow().isoformat(),
                },
                extra_filters=[('status', f'eq.{DraftSessionStatus.ACTIVE.value}')]
            )
        except Exception as e:
            return self.store_failure(f"pause draft session {session_id}", e)

        if not updated:
            logger.info(f"Pause requested for session {session_id}, which is not active")
            return ActionResult.ok(data={'updated': False}, message="Draft is not active; nothing to pause.")

        logger.info(f"Draft session {session_id} paused by {user_id}")
        # The store has no dedicated "paused" notification type
        await notification_service.notify_all_users(
            DRAFT_STARTED, "The draft has been paused by an admin. Picks are on hold."
        )
        return ActionResult.ok(data={'updated': True}, message="Draft paused.")

    async def resume_draft(self, session_id: str, user_id: Optional[str]) -> ActionResult:
        """Resume a paused draft (admin only)."""
        denied = await auth_service.verify_admin(user_id)
        if denied is not None:
            return denied
        return await self.activate_draft(session_id)

    async def complete_draft(
        self,
        session_id: str,
        user_id: Optional[str] = None,
        automatic: bool = False,
        message: Optional[str] = None
    ) -> ActionResult:
        """
        Mark a session completed.

        Admin only unless `automatic` (completion triggered by the draft itself).
        """
        if not automatic:
            denied = await auth_service.verify_admin(user_id)
            if denied is not None:
                return denied

        try:
            updated = await self.patch(session_id, {
                'status': DraftSessionStatus.COMPLETED.value,
                'current_pick_deadline': None,
                'current_on_clock_team_id': None,
                'updated_at': utcnow().isoformat(),
            })
        except Exception as e:
            return self.store_failure(f"complete draft session {session_id}", e)

        if not updated:
            return ActionResult.fail(ErrorKind.NOT_FOUND, "Draft session not found")

        message = message or "The draft has been completed by an admin."
        logger.info(f"Draft session {session_id} completed: {message}")
        await notification_service.notify_all_users(DRAFT_COMPLETED, message)
        return ActionResult.ok(data=updated, message=message)

    async def advance_draft(self, reset_skip_counter: bool = True) -> ActionResult:
        """
        Move the draft to the next turn after a pick (or skip) was recorded.

        Completes the draft when every team reached the round limit, the end
        time passed, or (when configured) every team is out of Cubucks.
        Otherwise the next team gets a fresh deadline.

        Args:
            reset_skip_counter: False when the recorded pick was a skip, so
                consecutive skips keep accumulating

        Returns:
            ActionResult with data {"completed": bool}
        """
        try:
            session = await self._session_for_active_season([DraftSessionStatus.ACTIVE.value])
            if not session:
                return ActionResult.ok(data={'completed': False}, message="No active draft session")

            if reset_skip_counter and session.consecutive_skipped_picks:
                await self.patch(session.id, {'consecutive_skipped_picks': 0})

            status = await draft_order_service.get_draft_status(session.id)
            if not status:
                return ActionResult.fail(ErrorKind.NOT_FOUND, "Could not determine draft status")

            teams = None
            if get_config().end_draft_when_cubucks_exhausted:
                teams = await team_service.get_all_teams()

            now = utcnow()
            reason = completion_reason(status, session, teams, now)
            if reason:
                logger.info(f"Draft session {session.id} complete: {reason}")
                completed = await self.complete_draft(
                    session.id,
                    automatic=True,
                    message=(
                        f"The draft is complete! {status.total_picks} total picks were made "
                        f"across {session.total_rounds} rounds."
                    )
                )
                if not completed.success:
                    return completed
                return ActionResult.ok(data={'completed': True, 'status': status}, message=reason)

            await self.patch(session.id, {
                'current_pick_deadline': session.next_deadline(now).isoformat(),
                'current_on_clock_team_id': status.on_the_clock.team_id,
                'updated_at': now.isoformat(),
            })
        except Exception as e:
            return self.store_failure("advance draft", e)

        logger.info(
            f"Draft advanced: round {status.current_round}, {status.on_the_clock.display_name} on the clock"
        )
        await self._announce_turn(status, session.hours_per_pick, with_round=True)
        return ActionResult.ok(data={'completed': False, 'status': status})

    # -- timer ------------------------------------------------------------

    async def check_draft_timer(self, now: Optional[datetime] = None) -> TimerCheckResult:
        """
        Act on whatever is due. Safe to call as often as desired.

        In order: start a scheduled draft whose start time passed, end an
        active draft past its end time, end a stalled draft (a full round
        of skips), auto-draft for a team whose deadline passed.
        """
        now = now or utcnow()

        try:
            session = await self._session_for_active_season(
                [DraftSessionStatus.SCHEDULED.value, DraftSessionStatus.ACTIVE.value]
            )
        except Exception as e:
            logger.error(f"Timer check could not load the draft session: {e}")
            return TimerCheckResult(action="error", error=str(e))

        if not session:
            return TimerCheckResult()

        set_draft_context(session_id=session.id)

        if session.is_scheduled:
            if not session.has_started(now):
                return TimerCheckResult()
            result = await self.activate_draft(session.id)
            if result.success:
                return TimerCheckResult(action="activated", message="Draft has been activated!")
            return TimerCheckResult(action="error", error=result.error)

        if session.is_past_end_time(now):
            result = await self.complete_draft(
                session.id, automatic=True, message="The draft has ended (end time reached)."
            )
            if result.success:
                return TimerCheckResult(action="completed", message="Draft has ended (deadline reached).")
            return TimerCheckResult(action="error", error=result.error)

        status = await draft_order_service.get_draft_status(session.id)
        if status and session.consecutive_skipped_picks >= status.total_teams:
            return await self._complete_stalled(session, status)

        if not (session.is_pick_expired(now) and session.current_on_clock_team_id):
            return TimerCheckResult()

        team_id = session.current_on_clock_team_id
        set_draft_context(session_id=session.id, team_id=team_id)
        auto = await auto_draft_service.execute_auto_draft(team_id, session.id)

        if auto.success:
            advanced = await self.advance_draft()
            card_name = auto.data.get('card_name', 'a card') if auto.data else 'a card'
            suffix = " Draft is now complete!" if advanced.success and advanced.data.get('completed') else ""
            return TimerCheckResult(
                action="auto_drafted",
                message=f"Auto-drafted {card_name} for team {team_id}.{suffix}",
            )

        logger.warning(f"Auto-draft failed for {team_id}: {auto.error}. The pick will be skipped.")
        return await self._skip_turn(session, team_id, auto.error)

    async def _skip_turn(self, session: DraftSession, team_id: str, reason: Optional[str]) -> TimerCheckResult:
        status = await draft_order_service.get_draft_status(session.id)
        if not status:
            return TimerCheckResult(action="error", error="Could not get draft status to log skipped pick.")

        skipped = await draft_pick_service.add_skipped_pick(team_id, status.total_picks + 1, session.id)
        if not skipped.success:
            return TimerCheckResult(
                action="error", error=f"Auto-draft failed and could not log skipped pick: {skipped.error}"
            )

        skips = session.consecutive_skipped_picks + 1
        try:
            await self.patch(session.id, {'consecutive_skipped_picks': skips})
        except Exception as e:
            logger.error(f"Could not record skip counter for session {session.id}: {e}")
            return TimerCheckResult(action="error", error=str(e))

        if skips >= status.total_teams:
            return await self._complete_stalled(session, status)

        advanced = await self.advance_draft(reset_skip_counter=False)
        if not advanced.success:
            return TimerCheckResult(
                action="error", error=f"Auto-draft failed and draft could not be advanced: {advanced.error}"
            )

        return TimerCheckResult(
            action="skipped",
            message=f"Team {team_id} could not auto-draft (Reason: {reason}). Their pick was skipped.",
            error=f"Auto-draft for {team_id} failed and was skipped.",
        )

    async def _complete_stalled(self, session: DraftSession, status: DraftStatus) -> TimerCheckResult:
        """A full round passed without a successful pick."""
        logger.warning(f"Draft session {session.id} stalled after {status.total_teams} consecutive skips")
        result = await self.complete_draft(
            session.id,
            automatic=True,
            message="The draft has ended: a full round passed without any team able to pick."
        )
        if not result.success:
            return TimerCheckResult(action="error", error=result.error)
        return TimerCheckResult(action="completed", message="Draft ended after a full round of skipped picks.")

    # -- human picks ------------------------------------------------------

    async def draft_card(self, team_id: str, card_pool_id: str, user_id: Optional[str]) -> ActionResult:
        """
        Draft a card instance for a team whose turn it is.

        Charges the card's Cubucks cost, records the pick, purges the card
        from queues and advances the draft.

        Returns:
            ActionResult with data {"pick": DraftPick, "completed": bool, "cost": int}
        """
        denied = await auth_service.verify_team_membership(team_id, user_id)
        if denied is not None:
            return denied

        try:
            session = await self._session_for_active_season([DraftSessionStatus.ACTIVE.value])
            if not session:
                return ActionResult.fail(ErrorKind.VALIDATION, "The draft is not active right now.")

            status = await draft_order_service.get_draft_status(session.id)
            if not status:
                return ActionResult.fail(ErrorKind.NOT_FOUND, "Could not determine draft status")
            if status.on_the_clock.team_id != team_id:
                return ActionResult.fail(
                    ErrorKind.VALIDATION,
                    f"It is not your turn. {status.on_the_clock.display_name} is on the clock."
                )

            card = await card_pool_service.get_card(card_pool_id)
            if not card:
                return ActionResult.fail(ErrorKind.NOT_FOUND, "Card not found in the pool")
            if await draft_pick_service.is_card_drafted(card_pool_id):
                return ActionResult.fail(ErrorKind.CONFLICT, ALREADY_DRAFTED)

            cost = card.cost(get_config().default_card_cost)
            team = await team_service.get_team(team_id)
            balance = team.cubucks_balance if team else 0
            if balance < cost:
                return ActionResult.fail(
                    ErrorKind.VALIDATION, f"Insufficient Cubucks! Need {cost}, you have {balance}"
                )
        except Exception as e:
            return self.store_failure(f"prepare pick for team {team_id}", e)

        spent = await team_service.spend_cubucks_on_draft(
            team_id, cost, card.card_id, card.card_name, card_pool_id=card.id, season_id=session.season_id
        )
        if not spent.success:
            return spent

        team_picks = await draft_pick_service.get_team_draft_picks(team_id, session.id)
        pick = DraftPick(
            team_id=team_id,
            draft_session_id=session.id,
            card_pool_id=card.id,
            card_id=card.card_id,
            card_name=card.card_name,
            card_set=card.card_set,
            card_type=card.card_type,
            rarity=card.rarity,
            colors=card.colors,
            image_url=card.image_url,
            mana_cost=card.mana_cost,
            cmc=card.cmc,
            pick_number=len(team_picks) + 1,
        )
        recorded = await draft_pick_service.add_draft_pick(pick, user_id)
        if not recorded.success:
            # TODO: refund through a store-side function once one exists; the charge above stands
            logger.error(f"Pick for team {team_id} failed after charging {cost} Cubucks: {recorded.error}")
            return recorded

        await draft_queue_service.cleanup_draft_queues(card.card_id, card.id)
        advanced = await self.advance_draft()
        completed = bool(advanced.success and advanced.data and advanced.data.get('completed'))

        return ActionResult.ok(
            data={'pick': recorded.data or pick, 'completed': completed, 'cost': cost},
            message=f"Acquired {card.card_name} for {cost} Cubucks!"
        )


# Global service instance
draft_session_service = DraftSessionService()
