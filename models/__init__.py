"""
Data models for the Cube League Draft Bot

Clean Pydantic models with proper validation and type safety.
"""

from models.base import DraftBaseModel
from models.season import Season
from models.user import LeagueUser
from models.team import Team, SeasonStanding
from models.draft_order import DraftOrderEntry
from models.draft_session import DraftSession, DraftSessionStatus
from models.draft_pick import DraftPick
from models.draft_status import DraftStatus, DraftStatusTeam, DraftStatusEntry
from models.card import PoolCard, CardMetadata
from models.draft_queue import QueueEntry
from models.results import ActionResult, ErrorKind, TimerCheckResult
from models.poll import Poll, PollResult, VoteType
from models.auto_draft import AutoDraftDetails, AutoDraftSelection, AutoDraftPreview, AutoDraftLogEntry

__all__ = [
    'DraftBaseModel',
    'Season',
    'LeagueUser',
    'Team',
    'SeasonStanding',
    'DraftOrderEntry',
    'DraftSession',
    'DraftSessionStatus',
    'DraftPick',
    'DraftStatus',
    'DraftStatusTeam',
    'DraftStatusEntry',
    'PoolCard',
    'CardMetadata',
    'QueueEntry',
    'ActionResult',
    'ErrorKind',
    'TimerCheckResult',
    'Poll',
    'PollResult',
    'VoteType',
    'AutoDraftDetails',
    'AutoDraftSelection',
    'AutoDraftPreview',
    'AutoDraftLogEntry',
]
