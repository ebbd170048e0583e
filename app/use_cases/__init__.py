from .run_analysis import run_analysis, AnalysisRequest

__all__ = ["run_analysis", "AnalysisRequest"]
