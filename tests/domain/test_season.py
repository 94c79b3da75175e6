from bricks.domain.season import Season, is_postseason_day


class TestSeason:
    def test_str(self) -> None:
        assert str(Season("gamma", 3)) == "gamma/3"

    def test_ordering(self) -> None:
        assert sorted([Season("gamma", 2), Season("alpha", 9), Season("gamma", 1)]) == [
            Season("alpha", 9),
            Season("gamma", 1),
            Season("gamma", 2),
        ]


class TestIsPostseasonDay:
    def test_default_boundary(self) -> None:
        assert not is_postseason_day(98)
        assert is_postseason_day(99)

    def test_custom_boundary(self) -> None:
        assert is_postseason_day(50, 50)
