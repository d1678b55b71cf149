import math
import pytest
from twombli.core import sigma_from_line_width, threshold_from_limit, scale_parameters, HIGH_CONTRAST

def test_sigma_formula_and_monotonic():
    sig = [sigma_from_line_width(w) for w in range(1, 40)]
    for w, s in zip(range(1, 40), sig):
        assert s == w / (2 * math.sqrt(3.0)) + 0.5
    assert all(b > a for a, b in zip(sig, sig[1:]))

def test_threshold_reference_value():
    s = sigma_from_line_width(5)
    # |response| = 14.257... -> floor 14
    assert threshold_from_limit(5, s, HIGH_CONTRAST) == pytest.approx(0.17 * 14)

def test_threshold_uses_floor_not_round():
    s = sigma_from_line_width(5)
    # |response| = 11.88... -> floor 11 (rounding would give 12)
    assert threshold_from_limit(5, s, 100.0) == pytest.approx(0.17 * 11)
    assert threshold_from_limit(5, s, 100.0) == threshold_from_limit(5, s, 100.0)

def test_scale_parameters_bright_and_dark():
    b = scale_parameters(5, dark_lines=False)
    assert b.line_width == 5
    assert b.lower_threshold == 0.0
    assert b.upper_threshold == pytest.approx(2.38)
    d = scale_parameters(5, dark_lines=True)
    assert d.sigma == b.sigma
    assert d.lower_threshold == pytest.approx(0.17 * 16)  # limit 135
    assert d.upper_threshold == pytest.approx(0.17 * 30)  # limit 255
