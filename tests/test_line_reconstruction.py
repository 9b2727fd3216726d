import pytest

from processors.line_reconstruction import LineReconstructor, reconstruct_lines

from conftest import make_run


def test_two_runs_with_gap_get_one_space():
    runs = [make_run("Hello", 0, 100, width=30), make_run("World", 40, 100.5, width=30)]

    lines = reconstruct_lines(runs)

    assert len(lines) == 1
    assert lines[0].text == "Hello World"
    assert [(s.start, s.end, s.run_index) for s in lines[0].spans] == [(0, 5, 0), (5, 6, -1), (6, 11, 1)]


def test_touching_runs_are_concatenated():
    runs = [make_run("555-", 0, 100, width=20), make_run("1234", 21, 100, width=20)]

    assert reconstruct_lines(runs)[0].text == "555-1234"


def test_runs_sorted_by_x_within_line():
    runs = [make_run("now", 100, 50, width=18), make_run("Call", 0, 50, width=24)]

    line = reconstruct_lines(runs)[0]

    assert line.text == "Call now"
    assert line.run_indices == [1, 0]


def test_lines_ordered_top_to_bottom():
    runs = [
        make_run("bottom", 0, 100),
        make_run("top", 0, 700),
        make_run("middle", 0, 400),
    ]

    assert [line.text for line in reconstruct_lines(runs)] == ["top", "middle", "bottom"]


def test_y_tolerance_groups_first_matching_line():
    runs = [make_run("a", 0, 100), make_run("b", 20, 101.9), make_run("c", 40, 97.5)]

    lines = reconstruct_lines(runs, y_tolerance=2.0)

    assert [line.text for line in lines] == ["a b", "c"]


def test_runs_in_range_skips_synthesized_spaces():
    runs = [make_run("Call", 0, 10, width=24), make_run("555-123-4567", 30, 10, width=72)]
    line = reconstruct_lines(runs)[0]

    assert line.runs_in_range(4, 5) == []
    assert line.runs_in_range(5, 17) == [1]
    assert line.runs_in_range(0, 17) == [0, 1]


def test_empty_runs_are_ignored():
    runs = [make_run("", 0, 10, width=0), make_run("text", 0, 10)]

    lines = reconstruct_lines(runs)

    assert len(lines) == 1
    assert lines[0].run_indices == [1]


def test_negative_tolerance_rejected():
    with pytest.raises(ValueError):
        LineReconstructor(y_tolerance=-1)


def test_source_whitespace_inserts_space_below_gap_tolerance():
    # A 6 pt Helvetica space is about 1.7 units wide
    runs = [
        make_run("Call", 0, 100, width=10),
        make_run("now", 11.7, 100, width=9).model_copy(update={"space_before": True}),
    ]

    line = reconstruct_lines(runs)[0]

    assert line.text == "Call now"
    assert line.spans[1].is_synthesized
