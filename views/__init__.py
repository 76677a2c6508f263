"""
Discord UI components for the Cube League Draft Bot

### Embed Templates (views.embeds)
- EmbedTemplate: Standard embed creation with consistent styling
- EmbedBuilder: Fluent interface for building complex embeds
- EmbedColors: Standard color palette

### Draft Views (views.draft_views)
- Status, order, pick confirmation, session and queue embeds

### Confirmations (views.confirmations)
- AdminConfirmView: Confirm/Cancel prompt for destructive admin actions
"""
from views.embeds import EmbedTemplate, EmbedBuilder, EmbedColors
from views.confirmations import AdminConfirmView

__all__ = ['EmbedTemplate', 'EmbedBuilder', 'EmbedColors', 'AdminConfirmView']
