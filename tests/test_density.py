import numpy as np
import cv2
from twombli.core import contrast_stretch, display_range_lut, build_density_map

def test_contrast_stretch_full_range_identity():
    img = np.tile(np.arange(256, dtype=np.uint8), (4, 1))
    assert np.array_equal(contrast_stretch(img, 0.0), img)

def test_contrast_stretch_expands_narrow_range():
    img = np.tile(np.arange(100, 151, dtype=np.uint8), (10, 1))
    out = contrast_stretch(img, 0.35)
    assert out.dtype == np.uint8 and out.shape == img.shape
    assert out.min() == 0 and out.max() == 255
    assert img.min() == 100  # input untouched

def test_contrast_stretch_flat_image_unchanged():
    img = np.full((8, 8), 42, np.uint8)
    out = contrast_stretch(img, 0.35)
    assert np.array_equal(out, img) and out is not img

def test_display_range_lut():
    lut = display_range_lut(0, 200)
    assert lut.shape == (256,) and lut.dtype == np.uint8
    assert lut[0] == 0 and lut[100] == 128
    assert lut[200] == 255 and lut[255] == 255

def test_density_map_fibres_bright_for_both_polarities():
    img = np.zeros((64, 64), np.uint8) + 20
    cv2.line(img, (0, 32), (63, 32), 200, 3)
    bright = build_density_map(img, dark_lines=False, max_display=200, saturated=0.35)
    dark = build_density_map(255 - img, dark_lines=True, max_display=200, saturated=0.35)
    assert np.array_equal(bright, dark)
    assert bright[32].mean() > bright[5].mean()
    assert bright.dtype == np.uint8 and bright.shape == img.shape

def test_density_map_accepts_colour(fibre_gray):
    bgr = cv2.cvtColor(fibre_gray, cv2.COLOR_GRAY2BGR)
    assert np.array_equal(build_density_map(bgr), build_density_map(fibre_gray))

def test_contrast_stretch_keeps_16bit_depth():
    img = np.tile(np.arange(2000, 2256, dtype=np.uint16), (4, 1))
    out = contrast_stretch(img, 0.0)
    assert out.dtype == np.uint16
    assert out.min() == 0 and out.max() == 65535
    assert img.min() == 2000
