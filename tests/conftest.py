import time
import numpy as np
import cv2
import pytest

from twombli.addons import Operations
from twombli.core import Params


@pytest.fixture
def rng():
    return np.random.default_rng(0)


@pytest.fixture
def fibre_gray(rng):
    # 128x128 synthetic: bright oblique fibres on a dark noisy background
    img = np.zeros((128, 128), np.uint8) + 30
    for off in range(-96, 128, 16):
        cv2.line(img, (off, 0), (off + 96, 127), 200, 3)
    noise = rng.normal(0, 4, img.shape).astype(np.int16)
    return np.clip(img.astype(np.int16) + noise, 0, 255).astype(np.uint8)


@pytest.fixture
def column_detector():
    # Marks column `line_width` and records the scales it was called with
    class ColumnDetector:
        def __init__(self):
            self.calls = []

        def detect(self, gray, scale, min_branch_length, dark_lines):
            self.calls.append(scale)
            m = np.zeros(gray.shape, bool)
            m[:, scale.line_width] = True
            return m

    return ColumnDetector()


@pytest.fixture
def threshold_ops():
    # Cheap ridge stand-in; flat images make it fail, bright images make it slow
    class ThresholdDetector:
        def detect(self, gray, scale, min_branch_length, dark_lines):
            if gray.max() == gray.min():
                raise RuntimeError("flat image")
            time.sleep(float(gray.mean()) / 25500.0)
            return gray > 128

    return Operations(ridge=ThresholdDetector())


@pytest.fixture
def fast_params():
    return Params(min_line_width=2, max_line_width=3, min_branch_length=2,
                  min_curvature_window=4, curvature_window_step=2, max_curvature_window=6)


@pytest.fixture
def batch_inputs(tmp_path):
    # A and C carry fibres, B is flat
    src = tmp_path / "input"
    src.mkdir()
    for name, spacing in (("A", 12), ("C", 20)):
        img = np.zeros((64, 64), np.uint8) + 20
        for x in range(4, 64, spacing):
            cv2.line(img, (x, 0), (x, 63), 220, 2)
        cv2.imwrite(str(src / f"{name}.png"), img)
    cv2.imwrite(str(src / "B.png"), np.full((64, 64), 77, np.uint8))
    (src / "notes.txt").write_text("not an image")
    return src
