"""Period analysis of tracked sessions."""

from metron.analysis.analyzer import AnalysisEngine, AnalysisReport, CategoryBreakdown

__all__ = ["AnalysisEngine", "AnalysisReport", "CategoryBreakdown"]
