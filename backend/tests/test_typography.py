from services.typography import load_font, text_width, wrap_text


def test_short_text_stays_on_one_line():
    font = load_font(20)
    assert wrap_text("ADA", font, 500) == ["ADA"]


def test_words_move_to_next_line_whole():
    font = load_font(20)
    one = text_width("AAAA", font)
    lines = wrap_text("AAAA AAAA AAAA", font, one * 1.5)
    assert lines == ["AAAA", "AAAA", "AAAA"]


def test_overlong_word_is_broken_per_character():
    font = load_font(20)
    limit = text_width("MMMM", font)
    lines = wrap_text("MMMMMMMMMM", font, limit)
    assert "".join(lines) == "MMMMMMMMMM"
    assert len(lines) >= 3
    assert all(text_width(line, font) <= limit for line in lines)


def test_every_line_has_progress_even_when_too_narrow():
    font = load_font(20)
    lines = wrap_text("WIDE", font, 1)
    assert lines == ["W", "I", "D", "E"]


def test_empty_text_yields_single_empty_line():
    assert wrap_text("", load_font(12), 100) == [""]


def test_tracking_widens_text():
    font = load_font(24)
    assert text_width("ABC", font, tracking=5) == text_width("ABC", font) + 10
    assert text_width("", font, tracking=5) == 0
