import math
import pytest
from twombli.core import (
    gap_summary, percentile_nearest_rank, parse_gap_row, write_gap_files, EmptyGapSetError,
)

def test_five_number_summary():
    s = gap_summary([5.0, 3.0, 1.0, 4.0, 2.0])
    assert s.mean == pytest.approx(3.0)
    assert s.stddev == pytest.approx(math.sqrt(2.0))  # population std
    assert (s.p5, s.p50, s.p95) == (1.0, 3.0, 5.0)

def test_nearest_rank_no_interpolation():
    v = [10.0, 20.0, 30.0, 40.0]
    assert percentile_nearest_rank(v, 50) == 20.0  # ceil(2.0) = 2
    assert percentile_nearest_rank(v, 51) == 30.0  # ceil(2.04) = 3
    assert percentile_nearest_rank(v, 100) == 40.0

def test_single_value():
    s = gap_summary([7])
    assert (s.mean, s.stddev, s.p5, s.p50, s.p95) == (7.0, 0.0, 7.0, 7.0, 7.0)

def test_empty_set_signals():
    with pytest.raises(EmptyGapSetError):
        gap_summary([])
    with pytest.raises(ValueError):
        percentile_nearest_rank([], 50)

def test_negative_area_rejected():
    with pytest.raises(ValueError):
        gap_summary([1.0, -2.0])

def test_gap_files_round_trip(tmp_path):
    areas = [12.5, 3.0, 80.25, 7.0, 7.0]
    gaps, arrays = tmp_path / "img_gaps.csv", tmp_path / "img_area_arrays.csv"
    s = write_gap_files("img", areas, gaps, arrays)
    prefix, back = parse_gap_row(gaps.read_text())
    assert prefix == "img"
    for a, b in zip((s.mean, s.stddev, s.p5, s.p50, s.p95),
                    (back.mean, back.stddev, back.p5, back.p50, back.p95)):
        assert b == pytest.approx(a)
    assert len(gaps.read_text().splitlines()) == 1
    assert [float(x) for x in arrays.read_text().splitlines()] == sorted(areas)

def test_empty_set_writes_nothing(tmp_path):
    gaps, arrays = tmp_path / "g.csv", tmp_path / "a.csv"
    with pytest.raises(EmptyGapSetError):
        write_gap_files("img", [], gaps, arrays)
    assert not gaps.exists() and not arrays.exists()

def test_parse_gap_row_rejects_bad_rows():
    with pytest.raises(ValueError):
        parse_gap_row("img 1 2 3")
