"""AI Insight: Google Gemini summaries and question answering."""

from .service import (
    AIInsightService,
    GeminiInsightService,
    create_insight_service,
    extract_text,
    strip_markdown_emphasis,
)

__all__ = [
    "AIInsightService",
    "GeminiInsightService",
    "create_insight_service",
    "extract_text",
    "strip_markdown_emphasis",
]
