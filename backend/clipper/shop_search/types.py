from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from ..contracts import ShopCatalogEntry
from ..schemas import InterpretedQuery, ParsedFilters, SearchCriteria
from .summary import user_notice

Interpreter = Callable[[str], Awaitable[InterpretedQuery]]


@dataclass
class SearchOutcome:
    results: list[ShopCatalogEntry]
    summary: str
    criteria: SearchCriteria
    clarification_needed: str | None = None
    ai_failed: bool = False
    parsed_filters: ParsedFilters | None = None
    dimensions: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.results

    @property
    def outcome(self) -> str:
        if self.ai_failed:
            return "ai_failed"
        if self.clarification_needed:
            return "clarification"
        if self.parsed_filters is not None:
            return "ai"
        if self.criteria.manual_filters().is_active:
            return "manual"
        return "unfiltered"

    @property
    def notice(self) -> str | None:
        return user_notice(
            ai_failed=self.ai_failed,
            clarification_needed=self.clarification_needed,
            result_count=len(self.results),
        )
