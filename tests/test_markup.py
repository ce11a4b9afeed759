from supporter_board.colors import Color
from supporter_board.markup import ELLIPSIS, align, bold, colored, column_position, format_entry, size, truncate


def test_truncate_keeps_short_text():
    assert truncate("Alice", 5) == "Alice"
    assert truncate("Alice", 10) == "Alice"


def test_truncate_adds_ellipsis():
    assert truncate("Alexandra", 5) == "Alex" + ELLIPSIS


def test_truncate_never_exceeds_width():
    for text in ["", "a", "ab", "abcdef", "a much longer supporter name"]:
        for width in range(0, 12):
            result = truncate(text, width)
            assert len(result) <= width
            if len(text) <= width:
                assert result == text


def test_column_position():
    assert column_position(0, 33) == ""
    assert column_position(1, 33) == "<pos=33%>"
    assert column_position(2, 33.0) == "<pos=66%>"
    assert column_position(1, 12.5) == "<pos=12.5%>"


def test_tags():
    assert bold("x") == "<b>x</b>"
    assert size("x", 125) == "<size=125%>x</size>"
    assert colored("x", Color(1.0, 0.0, 0.0)) == "<color=#FF0000>x</color>"
    assert align("x", "center") == "<align=center>x</align>"


def test_format_entry_substitutes_literally():
    assert format_entry("{0} [{1}]", "Alice", "Gold") == "Alice [Gold]"
    assert format_entry("{0}", "Alice", "Gold") == "Alice"


def test_format_entry_does_not_escape():
    assert format_entry("{0} [{1}]", "<b>Bob", "Gold") == "<b>Bob [Gold]"
    # A name containing the tier token is replaced as well.
    assert format_entry("{0}", "{1}", "Gold") == "Gold"
