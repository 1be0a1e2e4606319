import pytest

from covey.analysis.formatting import format_currency, format_multiple, format_percent


@pytest.mark.parametrize(
    "value, expected",
    [
        (325_000, "$325,000"),
        (1_250_000, "$1.25M"),
        (-1_200, "-$1,200"),
        (0, "$0"),
        (999.6, "$1,000"),
    ],
)
def test_format_currency(value, expected):
    assert format_currency(value) == expected


def test_format_percent():
    assert format_percent(6.4) == "6.4%"
    assert format_percent(6.4615, 2) == "6.46%"
    assert format_percent(-100.0) == "-100.0%"


def test_format_multiple():
    assert format_multiple(1.75) == "1.75x"
    assert format_multiple(0.0) == "0.00x"
