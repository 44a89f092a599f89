"""
Text, JSON, CSV and YAML rendering of aggregated evaluation results.
"""

from .renderer import ReportRenderer

__all__ = ['ReportRenderer']
