import csv
import numpy as np
import pytest
from twombli.addons import (
    MorphometryRow, SkeletonMorphometry, box_count_dimension, lacunarity,
    load_properties_xml, write_morphometry_csv,
)


def straight_line():
    m = np.zeros((64, 64), bool)
    m[20, 10:60] = True
    return m


def test_straight_line_metrics():
    row = SkeletonMorphometry().analyze(straight_line(), 10, min_branch_length=10, image="x.png")
    assert row.image == "x.png" and row.curvature_window == 10
    assert row.total_length == pytest.approx(50.0)
    assert (row.endpoints, row.branchpoints, row.branches) == (2, 0, 1)
    assert row.mean_curvature_deg == pytest.approx(0.0)
    assert row.projected_area_pct == pytest.approx(100.0 * 50 / 4096)


def test_cross_has_four_branches():
    m = np.zeros((64, 64), bool)
    m[32, 12:53] = True
    m[12:53, 32] = True
    row = SkeletonMorphometry().analyze(m, 10, min_branch_length=10)
    assert row.endpoints == 4
    assert row.branchpoints >= 1
    assert row.branches == 4


def test_bent_fibre_has_curvature():
    # two diagonal arms meeting at a right angle in (40, 40)
    m = np.zeros((64, 64), bool)
    for i in range(31):
        m[10 + i, 10 + i] = True
        m[40 - i, 40 + i] = True
    row = SkeletonMorphometry().analyze(m, 10, min_branch_length=10)
    assert (row.endpoints, row.branchpoints) == (2, 0)
    assert row.mean_curvature_deg > 3.0


def test_short_branches_are_not_counted():
    row = SkeletonMorphometry().analyze(straight_line(), 10, min_branch_length=60)
    assert row.branches == 0 and row.mean_branch_length == 0.0


def test_empty_mask():
    row = SkeletonMorphometry().analyze(np.zeros((32, 32), bool), 10)
    assert row.total_length == 0.0 and row.branches == 0 and row.fractal_dimension == 0.0


def test_box_counting_dimension():
    assert box_count_dimension(np.ones((128, 128), bool)) == pytest.approx(2.0)
    line = np.zeros((128, 128), bool)
    line[64, :] = True
    assert box_count_dimension(line) == pytest.approx(1.0)


def test_lacunarity_of_uniform_mask_is_zero():
    assert lacunarity(np.ones((64, 64), bool)) == pytest.approx(0.0)
    sparse = np.zeros((64, 64), bool)
    sparse[:8, :8] = True
    assert lacunarity(sparse) > 0


def test_properties_file_scales_lengths(tmp_path):
    xml = tmp_path / "anamorf.xml"
    xml.write_text(
        '<?xml version="1.0" encoding="UTF-8"?>\n<properties>\n'
        '<entry key="pixel_size">2.0</entry>\n<entry key="colour">red</entry>\n</properties>\n'
    )
    props = load_properties_xml(xml)
    assert props == {"pixel_size": "2.0"}
    row = SkeletonMorphometry().analyze(straight_line(), 10, properties=props)
    assert row.total_length == pytest.approx(100.0)
    assert load_properties_xml(None) == {}


def test_write_csv(tmp_path):
    rows = [SkeletonMorphometry().analyze(straight_line(), w, image="x.png") for w in (10, 20)]
    out = tmp_path / "x_results.csv"
    write_morphometry_csv(out, rows)
    with open(out, newline="") as f:
        table = list(csv.reader(f))
    assert table[0] == MorphometryRow.header()
    assert len(table) == 3
    assert table[2][:2] == ["x.png", "20"]
