from funding_table_ocr.row_reconstructor import (
    AMOUNT_STRATEGIES,
    cluster_by_line,
    dedupe_rows,
    first_two_words,
    joined_value_words,
    last_two_words,
    parse_line_amount,
    parse_row,
    parse_rows_from_lines,
    single_word_right_to_left,
    whole_line,
)
from funding_table_ocr.types import BBox, OCRWord, Row


def _w(text, x0, y0, w=40, h=20, conf=90.0):
    return OCRWord(text=text, confidence=float(conf), bbox=BBox(x0, y0, x0 + w, y0 + h))


def test_cluster_by_line_groups_and_sorts_left_to_right():
    words = [_w("$5", 300, 58), _w("Alice", 20, 50), _w("Bob", 20, 100), _w("$7", 300, 104)]
    lines = cluster_by_line(words, 15)
    assert [[w.text for w in line] for line in lines] == [["Alice", "$5"], ["Bob", "$7"]]


def test_cluster_by_line_tolerance_matters():
    words = [_w("Alice", 20, 50), _w("$5", 300, 62)]
    assert len(cluster_by_line(words, 15)) == 1
    assert len(cluster_by_line(words, 10)) == 2


def test_strategies_in_order():
    assert [s.__name__ for s in AMOUNT_STRATEGIES] == [
        "joined_value_words",
        "single_word_right_to_left",
        "last_two_words",
        "first_two_words",
        "whole_line",
    ]


def test_joined_value_words_handles_split_amount():
    vals = [_w("$1,", 300, 0), _w("250.00", 340, 0)]
    assert joined_value_words(vals, vals) == 125000
    assert joined_value_words([], vals) is None


def test_single_word_right_to_left_prefers_rightmost():
    vals = [_w("$10", 300, 0), _w("x", 340, 0), _w("$20", 380, 0)]
    assert single_word_right_to_left(vals, vals) == 2000


def test_two_word_strategies():
    vals = [_w("junk", 280, 0), _w("$3", 300, 0), _w(".50", 330, 0)]
    assert last_two_words(vals, vals) == 350
    assert first_two_words(vals, vals) is None
    assert last_two_words(vals[:1], vals) is None

    vals2 = [_w("$3", 300, 0), _w(".50", 330, 0), _w("junk", 360, 0)]
    assert first_two_words(vals2, vals2) == 350


def test_whole_line_last_resort():
    line = [_w("$4", 20, 0), _w("2", 60, 0)]
    assert whole_line([], line) == 4200
    assert parse_line_amount([], line) == 4200


def test_parse_row_splits_name_and_value():
    line = [_w("Alice", 20, 50), _w("Smith", 70, 50), _w("$50.00", 310, 50, w=60, conf=80)]
    row = parse_row(line, 204, 476)
    assert row == Row(name="Alice Smith", amount=5000, confidence=80.0)


def test_parse_row_accepts_value_slightly_right_of_column():
    line = [_w("Alice", 20, 50), _w("$9", 490, 50, w=20)]  # centre 500, column ends 476
    row = parse_row(line, 204, 476)
    assert row is not None and row.amount == 900


def test_parse_row_without_name_is_skipped():
    assert parse_row([_w("$5", 300, 0)], 204, 476) is None


def test_parse_row_without_value_is_kept_with_none():
    row = parse_row([_w("Frank", 20, 0, conf=77), _w("n/a", 300, 0, conf=40)], 204, 476)
    assert row is not None
    assert row.amount is None
    assert row.confidence == 40.0


def test_confidence_falls_back_to_name_words():
    row = parse_row([_w("Gina", 20, 0, conf=70), _w("Lee", 70, 0, conf=81)], 204, 476)
    assert row.amount is None
    assert row.confidence == 75.5


def test_parse_rows_from_lines():
    lines = [[_w("Title", 250, 0)], [_w("Alice", 20, 50), _w("$1", 300, 50)]]
    rows = parse_rows_from_lines(lines, 204, 476)
    assert [r.name for r in rows] == ["Alice"]


def test_dedupe_merges_variants_and_keeps_best():
    rows = [
        Row("Alice", 5000, 80.0),
        Row("alice ", 5000, 90.0),
        Row("Alic", 5000, 70.0),
        Row("Bob", None, 60.0),
        Row("Bob", 1000, 60.0),
    ]
    out = dedupe_rows(rows)
    assert out == [Row("alice ", 5000, 90.0), Row("Bob", 1000, 60.0)]


def test_dedupe_keeps_same_name_with_different_amounts():
    rows = [Row("Ann", 100, 90.0), Row("Ann", 200, 90.0)]
    assert dedupe_rows(rows) == rows


def test_dedupe_blank_amount_does_not_bridge_different_amounts():
    rows = [Row("Ann", 100, 90.0), Row("Ann", None, 80.0), Row("Ann", 200, 85.0)]
    out = dedupe_rows(rows)
    assert out == [Row("Ann", 100, 90.0), Row("Ann", 200, 85.0)]
    assert sum(r.amount for r in out) == 300


def test_dedupe_does_not_merge_distant_substrings():
    rows = [Row("Al", 100, 90.0), Row("Alexandra", 100, 90.0)]
    assert dedupe_rows(rows) == rows


def test_dedupe_prefers_longer_name_on_full_tie():
    rows = [Row("Jo", 300, 85.0), Row("Joe", 300, 85.0)]
    assert dedupe_rows(rows) == [Row("Joe", 300, 85.0)]


def test_dedupe_is_order_independent_for_groups():
    a = [Row("Alice", 5000, 80.0), Row("Alic", 5000, 95.0), Row("Bob", 10, 50.0)]
    b = list(reversed(a))
    assert sorted(dedupe_rows(a), key=lambda r: r.name) == sorted(dedupe_rows(b), key=lambda r: r.name)
