"""
Draft utility functions for the Cube League Draft Bot

Pure helpers for draft order generation, turn derivation, completion checks
and auto-draft card selection. Nothing in here touches the store, so every
rule can be tested without I/O.
"""
import math
import random
from datetime import datetime
from typing import List, Dict, Optional, Iterable, Sequence, Any

from config import get_config, MAGIC_COLORS
from models.team import Team, SeasonStanding
from models.draft_order import DraftOrderEntry
from models.draft_session import DraftSession, utcnow
from models.draft_status import DraftStatus, DraftStatusTeam, DraftStatusEntry
from models.card import PoolCard
from models.auto_draft import AutoDraftDetails, AutoDraftSelection, CardSummary
from utils.logging import get_contextual_logger

logger = get_contextual_logger(__name__)


# ---------------------------------------------------------------------------
# Standings and draft order
# ---------------------------------------------------------------------------

def calculate_win_pct(wins: int, losses: int) -> float:
    """
    Win percentage on a 0-100 scale rounded half-up to two decimals.

    Teams without games get 0.

    Examples:
        >>> calculate_win_pct(3, 1)
        75.0
        >>> calculate_win_pct(0, 0)
        0.0
    """
    games = wins + losses
    if games <= 0:
        return 0.0
    pct = wins / games * 100
    return math.floor(pct * 100 + 0.5) / 100


def tally_standings(teams: Sequence[Team], matches: Iterable[Dict[str, Any]]) -> List[SeasonStanding]:
    """
    Build win/loss records from completed matches.

    Matches without a winner are ignored. The loser is whichever side did
    not win. Result is sorted best record first.
    """
    stats = {team.id: [0, 0] for team in teams}

    for match in matches:
        winner = match.get('winner_team_id')
        if not winner:
            continue
        if winner in stats:
            stats[winner][0] += 1
        loser = match.get('away_team_id') if winner == match.get('home_team_id') else match.get('home_team_id')
        if loser in stats:
            stats[loser][1] += 1

    standings = [
        SeasonStanding(
            team_id=team.id,
            team_name=team.name,
            emoji=team.emoji,
            wins=stats[team.id][0],
            losses=stats[team.id][1],
            win_pct=calculate_win_pct(*stats[team.id]),
        )
        for team in teams
    ]
    standings.sort(key=lambda s: s.win_pct, reverse=True)
    return standings


def empty_standings(teams: Sequence[Team]) -> List[SeasonStanding]:
    """0-0 records for every team (first season, or a season without games)."""
    return [
        SeasonStanding(team_id=team.id, team_name=team.name, emoji=team.emoji)
        for team in teams
    ]


def shuffle(items: List[Any], rng: Optional[random.Random] = None) -> List[Any]:
    """Fisher-Yates shuffle returning a new list."""
    rng = rng or random
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = rng.randint(0, i)
        result[i], result[j] = result[j], result[i]
    return result


def draw_lottery_numbers(team_count: int, max_teams: int, rng: Optional[random.Random] = None) -> List[int]:
    """
    Draw one unique lottery number per team from 1..max_teams.

    A max_teams smaller than the team count is raised to the team count so
    every team still receives a number.
    """
    pool_size = max(max_teams, team_count)
    return shuffle(list(range(1, pool_size + 1)), rng)[:team_count]


def build_draft_order(
    season_id: str,
    teams: Sequence[Team],
    standings: Sequence[SeasonStanding],
    lottery_numbers: Sequence[int]
) -> List[DraftOrderEntry]:
    """
    Rank teams worst record first, breaking ties by lowest lottery number.

    Args:
        season_id: Season the order is generated for
        teams: All teams, in the order lottery numbers were assigned
        standings: Previous season records (teams missing from it are 0-0)
        lottery_numbers: One number per team, parallel to `teams`

    Returns:
        Draft order entries with pick positions 1..N
    """
    if len(lottery_numbers) < len(teams):
        raise ValueError("Every team needs a lottery number")

    by_team = {s.team_id: s for s in standings}
    ranked = []
    for team, lottery in zip(teams, lottery_numbers):
        standing = by_team.get(team.id) or SeasonStanding(team_id=team.id, team_name=team.name, emoji=team.emoji)
        ranked.append((team, standing, lottery))

    ranked.sort(key=lambda item: (item[1].win_pct, item[2]))

    pct_counts: Dict[float, int] = {}
    for _, standing, _ in ranked:
        pct_counts[standing.win_pct] = pct_counts.get(standing.win_pct, 0) + 1

    return [
        DraftOrderEntry(
            season_id=season_id,
            team_id=team.id,
            pick_position=position,
            previous_season_wins=standing.wins,
            previous_season_losses=standing.losses,
            previous_season_win_pct=standing.win_pct,
            lottery_number=lottery,
            is_lottery_winner=pct_counts[standing.win_pct] > 1,
        )
        for position, (team, standing, lottery) in enumerate(ranked, start=1)
    ]


# ---------------------------------------------------------------------------
# Turn derivation
# ---------------------------------------------------------------------------

def count_picks(team_ids: Iterable[str]) -> Dict[str, int]:
    """Count ledger rows per team (skipped picks included)."""
    counts: Dict[str, int] = {}
    for team_id in team_ids:
        counts[team_id] = counts.get(team_id, 0) + 1
    return counts


def compute_draft_status(
    order: Sequence[DraftOrderEntry],
    pick_counts: Dict[str, int],
    season_id: str = "",
    season_name: str = ""
) -> Optional[DraftStatus]:
    """
    Derive whose turn it is from the draft order and per-team pick counts.

    The team on the clock is the lowest pick position among teams with the
    fewest picks. On deck is the next such team, or the first team in the
    order when the team on the clock is the last one left in the round.

    Returns:
        DraftStatus, or None when the order is empty
    """
    if not order:
        return None

    entries = sorted(
        (
            DraftStatusEntry(
                team_id=entry.team_id,
                team_name=entry.team_name,
                team_emoji=entry.team_emoji,
                pick_position=entry.pick_position,
                picks_made=pick_counts.get(entry.team_id, 0),
            )
            for entry in order
        ),
        key=lambda e: e.pick_position,
    )

    min_picks = min(e.picks_made for e in entries)
    needing_pick = [e for e in entries if e.picks_made == min_picks]

    on_the_clock = needing_pick[0]
    on_deck = needing_pick[1] if len(needing_pick) > 1 else entries[0]

    return DraftStatus(
        on_the_clock=DraftStatusTeam(**on_the_clock.model_dump(exclude={'picks_made'})),
        on_deck=DraftStatusTeam(**on_deck.model_dump(exclude={'picks_made'})),
        current_round=min_picks + 1,
        total_picks=sum(e.picks_made for e in entries),
        total_teams=len(entries),
        season_id=season_id,
        season_name=season_name,
        draft_order=entries,
    )


def completion_reason(
    status: DraftStatus,
    session: DraftSession,
    teams: Optional[Sequence[Team]] = None,
    now: Optional[datetime] = None,
    end_when_cubucks_exhausted: Optional[bool] = None
) -> Optional[str]:
    """
    Decide whether the draft is over.

    Returns:
        Human readable reason when the draft should complete, otherwise None
    """
    if status.all_teams_reached(session.total_rounds):
        return f"all teams made {session.total_rounds} picks"

    if session.is_past_end_time(now or utcnow()):
        return "the draft end time has passed"

    if end_when_cubucks_exhausted is None:
        end_when_cubucks_exhausted = get_config().end_draft_when_cubucks_exhausted

    if end_when_cubucks_exhausted and teams:
        drafting = {e.team_id for e in status.draft_order}
        balances = [team for team in teams if team.id in drafting]
        if balances and all(team.is_broke for team in balances):
            return "every team is out of Cubucks"

    return None


# ---------------------------------------------------------------------------
# Auto-draft selection
# ---------------------------------------------------------------------------

def count_drafted_colors(picks: Iterable[Any]) -> Dict[str, int]:
    """Count drafted cards per color. Multicolor cards count for each color."""
    counts = {color: 0 for color in MAGIC_COLORS}
    for pick in picks:
        for color in getattr(pick, 'colors', None) or []:
            counts[color] = counts.get(color, 0) + 1
    return counts


def color_affinity_modifiers(drafted_counts: Dict[str, int], step: Optional[float] = None) -> Dict[str, float]:
    """ELO multiplier per color: 1 + step per card of that color already drafted."""
    if step is None:
        step = get_config().color_affinity_step
    return {color: 1 + step * drafted_counts.get(color, 0) for color in MAGIC_COLORS}


def effective_elo(card: PoolCard, modifiers: Dict[str, float]) -> float:
    """Raw ELO scaled by the best modifier among the card's colors."""
    if not card.colors:
        return card.elo
    return card.elo * max(modifiers.get(color, 1) for color in card.colors)


def _by_elo(cards: Iterable[PoolCard]) -> List[PoolCard]:
    return sorted(cards, key=lambda c: c.elo, reverse=True)


def _source_of(card: PoolCard) -> str:
    return "colored" if card.colors else "colorless"


def select_auto_draft_card(
    available: Sequence[PoolCard],
    drafted_picks: Iterable[Any],
    balance: int,
    pool_size: Optional[int] = None,
    default_cost: Optional[int] = None,
    affinity_step: Optional[float] = None
) -> AutoDraftSelection:
    """
    Pick a card for a team whose timer lapsed.

    1. Candidates are the top `pool_size` available cards by ELO, or by name
       when no card has an ELO.
    2. The dominant color is the one with the highest summed effective ELO
       across candidates, where effective ELO favors colors the team already
       drafted.
    3. The best card of the dominant color is chosen unless the best
       colorless card has a strictly higher ELO.
    4. When the choice is unaffordable, the highest ELO affordable candidate
       is taken, then the highest ELO affordable card anywhere in the pool.
    """
    config = get_config()
    pool_size = pool_size or config.auto_draft_candidate_pool
    default_cost = default_cost or config.default_card_cost

    drafted_counts = count_drafted_colors(drafted_picks)
    modifiers = color_affinity_modifiers(drafted_counts, affinity_step)
    details = AutoDraftDetails(
        team_drafted_color_counts=drafted_counts,
        color_affinity_modifiers=modifiers,
    )

    if not available:
        return AutoDraftSelection(card=None, details=details)

    rated = _by_elo(c for c in available if c.cubecobra_elo is not None and c.cubecobra_elo > 0)
    candidates = rated if rated else sorted(available, key=lambda c: c.card_name.lower())
    top = candidates[:pool_size]
    details.top_card_ids = [c.card_id for c in top]

    totals = {color: 0.0 for color in MAGIC_COLORS}
    for card in top:
        if card.colors:
            value = effective_elo(card, modifiers)
            for color in card.colors:
                totals[color] = totals.get(color, 0.0) + value
    details.color_totals = totals

    dominant = None
    highest = 0.0
    for color in MAGIC_COLORS:
        if totals[color] > highest:
            highest = totals[color]
            dominant = color
    details.dominant_color = dominant

    best_colored = None
    if dominant:
        colored = _by_elo(c for c in top if dominant in c.colors)
        best_colored = colored[0] if colored else None

    colorless = _by_elo(c for c in top if not c.colors)
    best_colorless = colorless[0] if colorless else None

    if best_colored:
        details.best_colored_card = CardSummary(
            card_id=best_colored.card_id, card_name=best_colored.card_name,
            elo=best_colored.elo, color=dominant,
        )
    if best_colorless:
        details.best_colorless_card = CardSummary(
            card_id=best_colorless.card_id, card_name=best_colorless.card_name,
            elo=best_colorless.elo,
        )

    colored_elo = best_colored.elo if best_colored else 0.0
    if best_colorless and best_colorless.elo > colored_elo:
        selected = best_colorless
    else:
        selected = best_colored or best_colorless

    if selected and selected.cost(default_cost) > balance:
        affordable = _by_elo(c for c in top if c.cost(default_cost) <= balance)
        if not affordable:
            affordable = _by_elo(c for c in available if c.cost(default_cost) <= balance)
        selected = affordable[0] if affordable else None
        logger.debug(f"Top choice unaffordable with balance {balance}; fallback: {selected}")

    details.selected_source = _source_of(selected) if selected else "none"
    return AutoDraftSelection(card=selected, details=details)


def rank_cards_for_queue(
    available: Sequence[PoolCard],
    drafted_picks: Iterable[Any],
    exclude_pool_ids: Iterable[str] = (),
    limit: int = 20,
    affinity_step: Optional[float] = None
) -> List[PoolCard]:
    """Order rated, not-yet-queued cards by effective ELO for queue previews."""
    if limit <= 0:
        return []
    modifiers = color_affinity_modifiers(count_drafted_colors(drafted_picks), affinity_step)
    excluded = set(exclude_pool_ids)
    remaining = [c for c in available if c.id not in excluded and c.cubecobra_elo is not None]
    remaining.sort(key=lambda c: effective_elo(c, modifiers), reverse=True)
    return remaining[:limit]
