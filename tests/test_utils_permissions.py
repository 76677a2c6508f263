"""
Tests for command permission decorators
"""
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from utils.permissions import NOT_LINKED, NO_TEAM, LOOKUP_FAILED, requires_league_user, requires_team
from tests.factories import UserFactory


def make_interaction(discord_id=111, responded=False):
    interaction = MagicMock()
    interaction.user.id = discord_id
    interaction.extras = {}
    interaction.response.is_done = MagicMock(return_value=responded)
    interaction.response.send_message = AsyncMock()
    interaction.followup.send = AsyncMock()
    return interaction


class DraftCog:

    @requires_league_user()
    async def whoami(self, interaction):
        return interaction.extras['league_user'].id

    @requires_team()
    async def my_team(self, interaction):
        return interaction.extras['team_id']


@pytest.fixture
def linked(store):
    store.seed('users',
               UserFactory.create(id="captain", discord_id="111").to_dict(),
               UserFactory.create(id="free-agent", discord_id="222").to_dict())
    store.seed('team_members', {'team_id': 'team-a', 'user_id': 'captain'})
    return store


class TestRequiresLeagueUser:

    @pytest.mark.asyncio
    async def test_linked_user(self, linked):
        assert await DraftCog().whoami(make_interaction(111)) == "captain"

    @pytest.mark.asyncio
    async def test_unlinked_user(self, linked):
        interaction = make_interaction(999)

        assert await DraftCog().whoami(interaction) is None
        interaction.response.send_message.assert_awaited_once_with(NOT_LINKED, ephemeral=True)


class TestRequiresTeam:

    @pytest.mark.asyncio
    async def test_team_member(self, linked):
        interaction = make_interaction(111)

        assert await DraftCog().my_team(interaction) == "team-a"
        assert interaction.extras['league_user'].id == "captain"

    @pytest.mark.asyncio
    async def test_user_without_team(self, linked):
        interaction = make_interaction(222)

        assert await DraftCog().my_team(interaction) is None
        interaction.response.send_message.assert_awaited_once_with(NO_TEAM, ephemeral=True)

    @pytest.mark.asyncio
    async def test_deferred_interaction_uses_followup(self, linked):
        interaction = make_interaction(999, responded=True)

        await DraftCog().my_team(interaction)

        interaction.followup.send.assert_awaited_once_with(NOT_LINKED, ephemeral=True)

    @pytest.mark.asyncio
    async def test_lookup_failure(self, linked):
        interaction = make_interaction(111)

        with patch('utils.permissions.get_league_user', AsyncMock(side_effect=RuntimeError("store offline"))):
            assert await DraftCog().my_team(interaction) is None

        interaction.response.send_message.assert_awaited_once_with(LOOKUP_FAILED, ephemeral=True)
