"""Visualization module for the fabric_quality package."""

from .charts import ReportVisualizer

__all__ = ["ReportVisualizer"]
