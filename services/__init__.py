"""
Business logic services for the Cube League Draft Bot

Service layer providing clean interfaces to store operations.
"""

from .auth_service import AuthService, auth_service
from .season_service import SeasonService, season_service
from .team_service import TeamService, team_service
from .card_pool_service import CardPoolService, card_pool_service
from .draft_pick_service import DraftPickService, draft_pick_service
from .draft_order_service import DraftOrderService, draft_order_service
from .draft_queue_service import DraftQueueService, draft_queue_service
from .auto_draft_service import AutoDraftService, auto_draft_service
from .draft_session_service import DraftSessionService, draft_session_service
from .notification_service import NotificationService, notification_service
from .vote_service import VoteService, vote_service
from .card_metadata_service import CardMetadataService, card_metadata_service

__all__ = [
    'AuthService', 'auth_service',
    'SeasonService', 'season_service',
    'TeamService', 'team_service',
    'CardPoolService', 'card_pool_service',
    'DraftPickService', 'draft_pick_service',
    'DraftOrderService', 'draft_order_service',
    'DraftQueueService', 'draft_queue_service',
    'AutoDraftService', 'auto_draft_service',
    'DraftSessionService', 'draft_session_service',
    'NotificationService', 'notification_service',
    'VoteService', 'vote_service',
    'CardMetadataService', 'card_metadata_service',
]
