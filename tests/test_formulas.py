from fractions import Fraction

from bricks import formulas
from bricks.domain.statistic import UNDEFINED


class TestRatio:
    def test_zero_denominator_is_undefined(self) -> None:
        assert formulas.ratio(5, 0) is UNDEFINED

    def test_result_is_exact(self) -> None:
        assert formulas.ratio(1, 3) == Fraction(1, 3)


class TestBatting:
    def test_batting_average_without_at_bats_is_undefined(self) -> None:
        assert formulas.batting_average(0, 0) is UNDEFINED

    def test_batting_average(self) -> None:
        assert formulas.batting_average(3, 4) == Fraction(3, 4)

    def test_on_base_percentage_counts_walks_and_sacrifice_flies(self) -> None:
        # (2 H + 1 BB) / (4 AB + 1 BB + 1 SF)
        assert formulas.on_base_percentage(2, 1, 4, 1) == Fraction(1, 2)

    def test_walk_only_line_has_on_base_but_no_average(self) -> None:
        assert formulas.on_base_percentage(0, 1, 0, 0) == 1
        assert formulas.batting_average(0, 0) is UNDEFINED

    def test_slugging(self) -> None:
        assert formulas.slugging_percentage(7, 4) == Fraction(7, 4)

    def test_ops_is_sum_of_exact_parts(self) -> None:
        ops = formulas.on_base_plus_slugging(Fraction(1, 3), Fraction(1, 2))
        assert ops == Fraction(5, 6)

    def test_ops_undefined_when_a_part_is(self) -> None:
        assert formulas.on_base_plus_slugging(UNDEFINED, Fraction(1, 2)) is UNDEFINED

    def test_babip(self) -> None:
        # (5 H - 1 HR) / (20 AB - 4 SO - 1 HR + 1 SF)
        assert formulas.babip(5, 1, 20, 4, 1) == Fraction(4, 16)


class TestPitching:
    def test_innings_kept_as_thirds(self) -> None:
        assert formulas.innings_pitched(10) == Fraction(10, 3)

    def test_era_without_outs_is_undefined(self) -> None:
        assert formulas.era(3, 0) is UNDEFINED

    def test_era(self) -> None:
        # 2 ER over 6 innings
        assert formulas.era(2, 18) == 3

    def test_whip(self) -> None:
        assert formulas.whip(2, 4, 18) == 1

    def test_per_nine(self) -> None:
        assert formulas.per_nine(9, 27) == 9

    def test_strikeout_walk_ratio_without_walks_is_undefined(self) -> None:
        assert formulas.strikeout_walk_ratio(10, 0) is UNDEFINED

    def test_fip_adds_league_constant(self) -> None:
        core = formulas.fip_core(1, 3, 6, 27)
        assert core == Fraction(13 + 9 - 12, 9)
        assert formulas.fip(1, 3, 6, 27, Fraction(3)) == core + 3

    def test_fip_undefined_without_constant(self) -> None:
        assert formulas.fip(1, 3, 6, 27, UNDEFINED) is UNDEFINED

    def test_fip_constant(self) -> None:
        assert formulas.fip_constant(Fraction(4), Fraction(1)) == 3

    def test_win_loss_percentage(self) -> None:
        assert formulas.win_loss_percentage(3, 1) == Fraction(3, 4)

    def test_win_loss_percentage_without_decisions_is_undefined(self) -> None:
        assert formulas.win_loss_percentage(0, 0) is UNDEFINED


class TestLeagueRelative:
    def test_era_plus(self) -> None:
        assert formulas.era_plus(4, 2) == 200

    def test_era_plus_with_zero_player_era_is_undefined(self) -> None:
        assert formulas.era_plus(4, 0) is UNDEFINED

    def test_ops_plus_league_average_is_100(self) -> None:
        assert formulas.ops_plus(Fraction(1, 3), Fraction(2, 5), Fraction(1, 3), Fraction(2, 5)) == 100

    def test_ops_plus_undefined_inputs(self) -> None:
        assert formulas.ops_plus(UNDEFINED, Fraction(1, 2), Fraction(1, 3), Fraction(2, 5)) is UNDEFINED
        assert formulas.ops_plus(Fraction(1, 3), Fraction(1, 2), Fraction(0), Fraction(2, 5)) is UNDEFINED
