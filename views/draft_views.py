"""
Draft Views for the Cube League Draft Bot

Provides embeds for the draft system.
"""
from typing import Optional, List

import discord

from models.draft_order import DraftOrderEntry
from models.draft_pick import DraftPick
from models.draft_queue import QueueEntry
from models.draft_session import DraftSession
from models.draft_status import DraftStatus
from models.auto_draft import AutoDraftPreview
from views.embeds import EmbedTemplate, EmbedColors, EmbedBuilder
from config import get_config

STATUS_ICONS = {
    "scheduled": "🗓️",
    "active": "🟢",
    "paused": "⏸️",
    "completed": "🏁",
}


def _truncate_lines(lines: List[str]) -> str:
    """Join lines without exceeding Discord's field value limit."""
    limit = get_config().discord_field_value_limit
    value = ""
    for line in lines:
        if len(value) + len(line) + 1 > limit - 4:
            return value + "..."
        value += line + "\n"
    return value or "None"


async def create_draft_status_embed(
    status: DraftStatus,
    session: Optional[DraftSession] = None
) -> discord.Embed:
    """
    Create draft status embed showing the current state.

    Args:
        status: Derived draft status
        session: Open draft session, if any

    Returns:
        Discord embed with draft status
    """
    title = f"{status.season_name} Draft" if status.season_name else "Draft Status"
    if session:
        title = f"{STATUS_ICONS.get(session.status, '')} {title}".strip()

    embed = EmbedTemplate.create_base_embed(
        title=title,
        description=f"Round {status.current_round} • {status.total_picks} picks made",
        color=EmbedColors.PRIMARY
    )

    embed.add_field(name="On The Clock", value=status.on_the_clock.display_name, inline=True)
    if not status.on_deck_is_on_the_clock:
        embed.add_field(name="On Deck", value=status.on_deck.display_name, inline=True)

    if session:
        embed.add_field(name="Status", value=session.status.title(), inline=True)
        embed.add_field(
            name="Format",
            value=f"{session.total_rounds} rounds, {session.hours_per_pick:g}h per pick",
            inline=True
        )
        if session.current_pick_deadline:
            deadline = int(session.current_pick_deadline.timestamp())
            embed.add_field(name="Deadline", value=f"<t:{deadline}:R>", inline=True)
        if session.consecutive_skipped_picks:
            embed.add_field(
                name="Consecutive Skips",
                value=f"{session.consecutive_skipped_picks} / {status.total_teams}",
                inline=True
            )
    else:
        embed.set_footer(text="No draft session is scheduled")

    picks = [
        f"**{entry.pick_position}.** {entry.display_name} ({entry.picks_made})"
        for entry in status.draft_order
    ]
    embed.add_field(name="📋 Picks Made", value=_truncate_lines(picks), inline=False)

    return embed


async def create_draft_order_embed(order: List[DraftOrderEntry], season_name: str = "") -> discord.Embed:
    """
    Create draft order embed with standings and lottery numbers.

    Args:
        order: Draft order entries sorted by pick position
        season_name: Season the order belongs to
    """
    embed = EmbedTemplate.create_base_embed(
        title=f"🎲 {season_name} Draft Order".strip(),
        description="Worst record picks first; ties are broken by lottery number.",
        color=EmbedColors.PRIMARY
    )

    if not order:
        embed.description = "No draft order has been generated for this season."
        return embed

    lines = []
    for entry in order:
        line = (
            f"**{entry.pick_position}.** {entry.team_emoji} {entry.team_name} "
            f"({entry.previous_season_wins}-{entry.previous_season_losses}, "
            f"{entry.previous_season_win_pct:.2f}%) • 🎟️ {entry.lottery_number}"
        )
        if entry.is_lottery_winner:
            line += " 🏆"
        lines.append(line)

    embed.add_field(name="Order", value=_truncate_lines(lines), inline=False)
    if any(entry.is_lottery_winner for entry in order):
        embed.set_footer(text="🏆 Tie broken by lottery")

    return embed


async def create_pick_success_embed(pick: DraftPick, team_name: str, cost: int) -> discord.Embed:
    """
    Create the confirmation embed for a drafted card.

    Args:
        pick: Recorded draft pick
        team_name: Display name of the drafting team
        cost: Cubucks charged
    """
    builder = EmbedBuilder(EmbedTemplate.success(
        title=f"{pick.card_name} Drafted!",
        description=f"Pick #{pick.pick_number} for {team_name}" if pick.pick_number else team_name
    ))
    builder.field("Cost", f"{cost} Cubucks")
    if pick.mana_cost:
        builder.field("Mana Cost", pick.mana_cost)
    if pick.colors:
        builder.field("Colors", "".join(pick.colors))
    if pick.card_type:
        builder.field("Type", pick.card_type, inline=False)
    if pick.image_url:
        builder.thumbnail(pick.image_url)
    return builder.build()


async def create_session_embed(session: DraftSession) -> discord.Embed:
    """Create admin embed describing a draft session."""
    embed = EmbedTemplate.info(
        title=f"Draft Session {STATUS_ICONS.get(session.status, '')}".strip(),
        description=str(session)
    )
    embed.add_field(name="Start", value=f"<t:{int(session.start_time.timestamp())}:f>", inline=True)
    if session.end_time:
        embed.add_field(name="End", value=f"<t:{int(session.end_time.timestamp())}:f>", inline=True)
    if session.id:
        embed.set_footer(text=f"Session ID: {session.id}")
    return embed


async def create_queue_embed(
    team_name: str,
    entries: List[QueueEntry],
    preview: Optional[AutoDraftPreview] = None
) -> discord.Embed:
    """
    Create the team queue embed with the auto-draft preview.

    Args:
        team_name: Display name of the team
        entries: Queue rows (manual and algorithm filled)
        preview: What the auto-draft would pick now
    """
    embed = EmbedTemplate.create_base_embed(
        title=f"📝 {team_name} Draft Queue",
        color=EmbedColors.INFO
    )

    if entries:
        lines = []
        for entry in entries:
            pin = "📌 " if entry.pinned else ""
            lines.append(f"**{entry.position}.** {pin}{entry.card_name}")
        embed.add_field(name="Queue", value=_truncate_lines(lines), inline=False)
    else:
        embed.description = "Your queue is empty. The auto-draft will choose by ELO and color affinity."

    if preview and preview.next_pick:
        source = "your queue" if preview.source == "manual_queue" else "the algorithm"
        embed.add_field(
            name="🤖 Auto-Draft Would Pick",
            value=f"{preview.next_pick.card_name} (from {source})",
            inline=False
        )
    elif preview and preview.error:
        embed.add_field(name="🤖 Auto-Draft", value=preview.error, inline=False)

    return embed
