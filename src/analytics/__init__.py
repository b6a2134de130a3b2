from .density import DensityEstimate, DensityEstimator
from .report import ReportFormatter

__all__ = ["DensityEstimate", "DensityEstimator", "ReportFormatter"]
