"""
Tests for the logging decorator utility
"""
import inspect
import pytest
from unittest.mock import Mock, patch

from utils.decorators import logged_command
from utils.logging import get_contextual_logger


class MockInteraction:
    """Mock Discord interaction for testing"""
    def __init__(self, user_id="123456", guild_id="987654", channel_id="555666"):
        self.user = Mock()
        self.user.id = user_id
        self.guild = Mock()
        self.guild.id = guild_id
        self.channel = Mock()
        self.channel.id = channel_id


class MockDraftCog:
    """Mock command class for testing decorator"""
    def __init__(self):
        self.logger = get_contextual_logger(f'{__name__}.MockDraftCog')

    @logged_command("/draft-pick")
    async def draft_pick(self, interaction, card_name: str, confirm: bool = True):
        """Draft a card by name"""
        return f"Drafted: {card_name}-{confirm}"

    @logged_command("/draft-fail")
    async def draft_fail(self, interaction, card_name: str):
        """Command that raises an error"""
        raise ValueError("Card not found")


@pytest.fixture
def mock_interaction():
    return MockInteraction()


@pytest.fixture
def mock_cog():
    return MockDraftCog()


class TestLoggedCommandDecorator:
    """Test the logged_command decorator"""

    def test_preserves_function_metadata(self, mock_cog):
        assert mock_cog.draft_pick.__name__ == "draft_pick"
        assert "Draft a card by name" in mock_cog.draft_pick.__doc__

    def test_preserves_signature(self, mock_cog):
        """Test that decorator preserves function signature for discord.py"""
        sig = inspect.signature(mock_cog.draft_pick)

        assert list(sig.parameters) == ["interaction", "card_name", "confirm"]
        assert sig.parameters['card_name'].annotation == str
        assert sig.parameters['confirm'].default is True

    @pytest.mark.asyncio
    async def test_successful_command_execution(self, mock_cog, mock_interaction):
        with patch('utils.decorators.set_discord_context') as mock_context:
            result = await mock_cog.draft_pick(mock_interaction, "Opt", False)

        assert result == "Drafted: Opt-False"
        mock_context.assert_called_once()
        call_args = mock_context.call_args[1]
        assert call_args['interaction'] is mock_interaction
        assert call_args['command'] == "/draft-pick"
        assert call_args['param_card_name'] == "Opt"
        assert call_args['param_confirm'] is False

    @pytest.mark.asyncio
    async def test_keyword_arguments_are_logged(self, mock_cog, mock_interaction):
        with patch('utils.decorators.set_discord_context') as mock_context:
            await mock_cog.draft_pick(mock_interaction, card_name="Opt")

        assert mock_context.call_args[1]['param_card_name'] == "Opt"
        # Defaults that were not passed are not logged
        assert 'param_confirm' not in mock_context.call_args[1]

    @pytest.mark.asyncio
    async def test_command_exception_propagates(self, mock_cog, mock_interaction):
        with patch('utils.decorators.set_discord_context'):
            with pytest.raises(ValueError, match="Card not found"):
                await mock_cog.draft_fail(mock_interaction, "Opt")

    @pytest.mark.asyncio
    async def test_logging_integration(self, mock_cog, mock_interaction):
        with patch('utils.decorators.set_discord_context'):
            with patch.object(mock_cog.logger, 'start_operation', return_value="trace123") as mock_start:
                with patch.object(mock_cog.logger, 'end_operation') as mock_end:
                    with patch.object(mock_cog.logger, 'info') as mock_info:
                        await mock_cog.draft_pick(mock_interaction, "Opt")

        mock_start.assert_called_once_with("draft_pick_command")
        mock_end.assert_called_once_with("trace123", "completed")
        info_calls = [call[0][0] for call in mock_info.call_args_list]
        assert info_calls == ["/draft-pick command started", "/draft-pick command completed successfully"]

    @pytest.mark.asyncio
    async def test_error_logging(self, mock_cog, mock_interaction):
        with patch('utils.decorators.set_discord_context'):
            with patch.object(mock_cog.logger, 'start_operation', return_value="trace123"):
                with patch.object(mock_cog.logger, 'end_operation') as mock_end:
                    with patch.object(mock_cog.logger, 'error') as mock_error:
                        with patch.object(mock_cog.logger, 'info') as mock_info:
                            with pytest.raises(ValueError):
                                await mock_cog.draft_fail(mock_interaction, "Opt")

        mock_end.assert_called_once_with("trace123", "failed")
        mock_error.assert_called_once()
        assert isinstance(mock_error.call_args[1]['error'], ValueError)
        mock_info.assert_called_once_with("/draft-fail command started")

    @pytest.mark.asyncio
    async def test_parameter_exclusion(self, mock_interaction):
        class AdminCog:
            def __init__(self):
                self.logger = get_contextual_logger(f'{__name__}.AdminCog')

            @logged_command("/draft-admin", exclude_params=["token"])
            async def admin(self, interaction, session_id: str, token: str):
                return session_id

        with patch('utils.decorators.set_discord_context') as mock_context:
            await AdminCog().admin(mock_interaction, "session-1", "secret")

        call_args = mock_context.call_args[1]
        assert call_args['param_session_id'] == "session-1"
        assert 'param_token' not in call_args

    @pytest.mark.asyncio
    async def test_auto_command_name(self, mock_interaction):
        class QueueCog:
            def __init__(self):
                self.logger = get_contextual_logger(f'{__name__}.QueueCog')

            @logged_command()
            async def draft_queue_add(self, interaction, card_name: str):
                return card_name

        with patch('utils.decorators.set_discord_context') as mock_context:
            await QueueCog().draft_queue_add(mock_interaction, "Opt")

        assert mock_context.call_args[1]['command'] == "/draft-queue-add"

    @pytest.mark.asyncio
    async def test_parameter_logging_disabled(self, mock_cog, mock_interaction):
        class QuietCog:
            def __init__(self):
                self.logger = get_contextual_logger(f'{__name__}.QuietCog')

            @logged_command("/quiet", log_params=False)
            async def quiet(self, interaction, note: str):
                return note

        with patch('utils.decorators.set_discord_context') as mock_context:
            await QuietCog().quiet(mock_interaction, "hello")

        assert not any(key.startswith('param_') for key in mock_context.call_args[1])

    @pytest.mark.asyncio
    async def test_logger_fallback(self, mock_interaction):
        """Test that decorator creates logger if class doesn't have one"""
        class NoLoggerCog:
            @logged_command("/fallback")
            async def fallback(self, interaction, card_name: str):
                return card_name

        with patch('utils.decorators.set_discord_context'):
            with patch('utils.decorators.get_contextual_logger') as mock_get_logger:
                mock_logger = Mock()
                mock_logger.start_operation.return_value = "trace123"
                mock_get_logger.return_value = mock_logger

                result = await NoLoggerCog().fallback(mock_interaction, "Opt")

        mock_get_logger.assert_called_once_with(f'{NoLoggerCog.__module__}.{NoLoggerCog.__name__}')
        assert result == "Opt"
