"""
Poll voting service for the Cube League Draft Bot

Ballots are stored one row per selected option. Team and league polls
attribute ballots to the voter's team; league polls also weight them by
the voter's team role. Tallies are produced by store-side functions.
"""
import logging
from typing import List, Optional

from services.base_service import BaseService
from models.poll import Poll, PollResult, VoteType
from models.results import ActionResult, ErrorKind
from services.auth_service import LOGIN_REQUIRED

logger = logging.getLogger(f'{__name__}.VoteService')


class VoteService(BaseService[Poll]):
    """Service for casting ballots and reading poll results."""

    def __init__(self):
        super().__init__(Poll, 'polls')
        logger.debug("VoteService initialized")

    async def cast_vote(self, poll_id: str, option_ids: List[str], user_id: Optional[str]) -> ActionResult:
        """
        Replace the caller's ballot for a poll.

        Args:
            poll_id: Poll being voted on
            option_ids: Selected options (exactly one for single-choice polls)
            user_id: Voting league user
        """
        if not user_id:
            return ActionResult.fail(ErrorKind.NOT_AUTHENTICATED, LOGIN_REQUIRED)
        if not option_ids:
            return ActionResult.fail(ErrorKind.VALIDATION, "Select at least one option")

        try:
            poll = await self.get_by_id(poll_id)
            if not poll:
                return ActionResult.fail(ErrorKind.NOT_FOUND, "Poll not found")

            if poll.has_ended():
                return ActionResult.fail(ErrorKind.VALIDATION, "This poll has ended")

            if not poll.allow_multiple_votes and len(option_ids) > 1:
                return ActionResult.fail(ErrorKind.VALIDATION, "This poll only allows one selection")

            client = await self.get_client()
            team_id = None
            vote_weight = 1

            if poll.is_team_scoped:
                team_id = await client.rpc('get_user_team_for_voting', {'p_user_id': user_id})
                if not team_id:
                    return ActionResult.fail(ErrorKind.VALIDATION, "You must be on a team to vote in this poll")

                if poll.vote_type == VoteType.LEAGUE.value:
                    weight = await client.rpc('get_user_vote_weight', {'p_user_id': user_id, 'p_team_id': team_id})
                    vote_weight = weight or 1

            # Replace any previous ballot
            await client.delete('poll_votes', [('poll_id', f'eq.{poll_id}'), ('user_id', f'eq.{user_id}')])
            await client.insert('poll_votes', [
                {
                    'poll_id': poll_id,
                    'option_id': option_id,
                    'user_id': user_id,
                    'team_id': team_id,
                    'vote_weight': vote_weight,
                }
                for option_id in option_ids
            ])

            if poll.is_team_scoped:
                await client.rpc('recalculate_poll_results', {'p_poll_id': poll_id, 'p_team_id': team_id})

        except Exception as e:
            return self.store_failure(f"cast vote on poll {poll_id}", e)

        logger.info(f"User {user_id} voted on poll {poll_id} ({len(option_ids)} option(s), weight {vote_weight})")
        return ActionResult.ok(message="Vote cast successfully!")

    async def remove_vote(self, poll_id: str, user_id: Optional[str]) -> ActionResult:
        """Withdraw the caller's ballot."""
        if not user_id:
            return ActionResult.fail(ErrorKind.NOT_AUTHENTICATED, LOGIN_REQUIRED)

        try:
            client = await self.get_client()
            await client.delete('poll_votes', [('poll_id', f'eq.{poll_id}'), ('user_id', f'eq.{user_id}')])
        except Exception as e:
            return self.store_failure(f"remove vote on poll {poll_id}", e)

        return ActionResult.ok(message="Vote removed successfully")

    async def get_poll_results(self, poll_id: str) -> ActionResult:
        """Per-option tallies, as a list of PollResult in data."""
        try:
            client = await self.get_client()
            rows = await client.rpc('get_poll_results', {'p_poll_id': poll_id})
        except Exception as e:
            return self.store_failure(f"fetch results for poll {poll_id}", e)

        return ActionResult.ok(data=[PollResult.from_api_data(row) for row in rows or []])


# Global service instance
vote_service = VoteService()
