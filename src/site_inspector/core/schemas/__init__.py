"""Pydantic schemas for request/response validation.

Sub-modules:
    analysis: AnalysisRequest, AnalysisResult and its sections,
        AnalyzeResponse, ErrorResponse, AnalysisRecord
"""

from __future__ import annotations
