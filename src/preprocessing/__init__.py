from .filters import Preprocessor, apply_bilateral_filter, apply_clahe_hsv

__all__ = ["Preprocessor", "apply_bilateral_filter", "apply_clahe_hsv"]
