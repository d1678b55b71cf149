import numpy as np
import cv2
from twombli.addons import HessianRidgeDetector, hessian_line_response
from twombli.addons.ridge_detect import hysteresis, remove_short_lines
from twombli.core import scale_parameters


def horizontal_line(value=200, background=20):
    img = np.zeros((128, 128), np.uint8) + background
    cv2.line(img, (0, 64), (127, 64), value, 5)
    return img


def test_bright_line_centreline():
    mask = HessianRidgeDetector().detect(horizontal_line(), scale_parameters(5), 10, False)
    assert mask.dtype == bool and mask.shape == (128, 128)
    rows, cols = np.nonzero(mask)
    assert rows.size > 0
    assert abs(np.median(rows) - 64) <= 1
    assert np.unique(cols).size > 100


def test_dark_line_centreline():
    img = 255 - horizontal_line()
    mask = HessianRidgeDetector().detect(img, scale_parameters(5, dark_lines=True), 10, True)
    rows, _ = np.nonzero(mask)
    assert rows.size > 0
    assert abs(np.median(rows) - 64) <= 1


def test_flat_image_has_no_lines():
    flat = np.full((64, 64), 90, np.uint8)
    assert not HessianRidgeDetector().detect(flat, scale_parameters(5), 10, False).any()


def test_response_is_non_negative():
    resp, normal = hessian_line_response(horizontal_line(), 2.0)
    assert resp.min() >= 0
    assert resp.shape == normal.shape == (128, 128)
    assert resp[64].mean() > resp[20].mean()


def test_hysteresis_keeps_only_regions_with_a_strong_pixel():
    v = np.zeros((10, 10), np.float32)
    v[2, 1:5] = 1.0
    v[2, 3] = 5.0   # strong seed
    v[7, 1:5] = 1.0  # weak only
    out = hysteresis(v, 0.5, 3.0)
    assert out[2, 1:5].all()
    assert not out[7].any()


def test_remove_short_lines():
    bw = np.zeros((20, 20), bool)
    bw[5, 2:15] = True
    bw[12, 2:5] = True
    out = remove_short_lines(bw, 5)
    assert out[5, 2:15].all() and not out[12].any()
