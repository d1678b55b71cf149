"""
TWOMBLI: quantification of fibrous (extracellular-matrix) networks in
2D microscopy images.
"""

__version__ = "1.0.0"
