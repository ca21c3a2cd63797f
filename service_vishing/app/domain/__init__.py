"""
Domain logic for the Vishing Service.

Request/response schemas, language normalization, scene lookup and the
conversation summarizer. Nothing here knows about FastAPI.
"""

from .prompt_service import PromptService, SceneLookup
from .summary_service import SummaryService

__all__ = [
    "PromptService",
    "SceneLookup",
    "SummaryService",
]
