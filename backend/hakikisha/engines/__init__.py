"""Core business-logic engines."""

from hakikisha.engines.ai_response_parser import AIResponseParser
from hakikisha.engines.similarity_detector import SimilarityDetector
from hakikisha.engines.trending_detector import TrendingDetector

__all__ = [
    "AIResponseParser",
    "SimilarityDetector",
    "TrendingDetector",
]
