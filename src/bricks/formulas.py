"""Derived-statistic formulas.

Every function takes summed counting stats (never per-game ratios) and returns
an exact ``Fraction`` or ``UNDEFINED`` when its denominator is zero. Inputs
that are themselves ``UNDEFINED`` propagate.

Conventions:
    - Innings pitched are ``outs / 3`` kept as a rational, so 10 outs is
      ``Fraction(10, 3)`` and never ``3.33``.
    - ``era_plus`` divides by the player's ERA, so a player ERA of zero is
      ``UNDEFINED`` rather than infinite.
"""

from fractions import Fraction

from bricks.domain.statistic import UNDEFINED, StatValue

_FIP_HR_WEIGHT = 13
_FIP_BB_WEIGHT = 3
_FIP_SO_WEIGHT = 2


def ratio(numerator: int | Fraction, denominator: int | Fraction) -> StatValue:
    if denominator == 0:
        return UNDEFINED
    return Fraction(numerator) / Fraction(denominator)


def batting_average(hits: int, at_bats: int) -> StatValue:
    return ratio(hits, at_bats)


def on_base_percentage(hits: int, walks: int, at_bats: int, sacrifice_flies: int) -> StatValue:
    return ratio(hits + walks, at_bats + walks + sacrifice_flies)


def slugging_percentage(total_bases: int, at_bats: int) -> StatValue:
    return ratio(total_bases, at_bats)


def on_base_plus_slugging(obp: StatValue, slg: StatValue) -> StatValue:
    if obp is UNDEFINED or slg is UNDEFINED:
        return UNDEFINED
    return obp + slg


def babip(hits: int, home_runs: int, at_bats: int, strike_outs: int, sacrifice_flies: int) -> StatValue:
    return ratio(hits - home_runs, at_bats - strike_outs - home_runs + sacrifice_flies)


def innings_pitched(outs_recorded: int) -> Fraction:
    return Fraction(outs_recorded, 3)


def per_nine(count: int, outs_recorded: int) -> StatValue:
    """Rate of ``count`` per nine innings (27 outs)."""
    return ratio(27 * count, outs_recorded)


def era(earned_runs: int, outs_recorded: int) -> StatValue:
    return per_nine(earned_runs, outs_recorded)


def whip(walks: int, hits: int, outs_recorded: int) -> StatValue:
    if outs_recorded == 0:
        return UNDEFINED
    return Fraction(walks + hits) / innings_pitched(outs_recorded)


def strikeout_walk_ratio(strike_outs: int, walks: int) -> StatValue:
    return ratio(strike_outs, walks)


def win_loss_percentage(wins: int, losses: int) -> StatValue:
    return ratio(wins, wins + losses)


def fip_core(home_runs: int, walks: int, strike_outs: int, outs_recorded: int) -> StatValue:
    """FIP before the league constant: ``(13*HR + 3*BB - 2*SO) / IP``."""
    if outs_recorded == 0:
        return UNDEFINED
    weighted = _FIP_HR_WEIGHT * home_runs + _FIP_BB_WEIGHT * walks - _FIP_SO_WEIGHT * strike_outs
    return Fraction(weighted) / innings_pitched(outs_recorded)


def fip(home_runs: int, walks: int, strike_outs: int, outs_recorded: int, league_constant: StatValue) -> StatValue:
    core = fip_core(home_runs, walks, strike_outs, outs_recorded)
    if core is UNDEFINED or league_constant is UNDEFINED:
        return UNDEFINED
    return core + league_constant


def fip_constant(league_era: StatValue, league_fip_core: StatValue) -> StatValue:
    """League constant that puts league-average FIP on the ERA scale."""
    if league_era is UNDEFINED or league_fip_core is UNDEFINED:
        return UNDEFINED
    return league_era - league_fip_core


def era_plus(league_era: StatValue, player_era: StatValue) -> StatValue:
    if league_era is UNDEFINED or player_era is UNDEFINED:
        return UNDEFINED
    return ratio(100 * league_era, player_era)


def ops_plus(obp: StatValue, slg: StatValue, league_obp: StatValue, league_slg: StatValue) -> StatValue:
    if UNDEFINED in (obp, slg, league_obp, league_slg):
        return UNDEFINED
    if league_obp == 0 or league_slg == 0:
        return UNDEFINED
    return 100 * (obp / league_obp + slg / league_slg - 1)
