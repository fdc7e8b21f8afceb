"""Natural-language shop search: filter merging, evaluation and summaries."""

from .engine import evaluate
from .merge import merge_criteria
from .service import search, search_async
from .types import SearchOutcome

__all__ = ["SearchOutcome", "evaluate", "merge_criteria", "search", "search_async"]
