"""High level orchestration for matching and suggestion runs."""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
import sqlite3
from typing import Any, AbstractSet, Dict, Iterable, List, Mapping, Optional

from .config import MatcherConfig
from .matcher import best_promotions_by_goal, filter_dismissed, find_matching_promotions
from .models import MileageGoal, PromotionMatch, ScrapedPromotion
from .processor import prepare_goals, prepare_promotions, summarise_promotions
from .reporter import build_report
from .suggestions import aggregate_balances, build_travel_suggestions

LOGGER = logging.getLogger(__name__)


@dataclass
class MatchingResult:
    """Result returned by :func:`run_matching_workflow`."""

    config: MatcherConfig
    promotions: List[ScrapedPromotion]
    goals: List[MileageGoal]
    matches: List[PromotionMatch]
    best_by_goal: Dict[str, PromotionMatch]
    summary: Dict[str, float]
    report: str
    warnings: List[str]

    def to_dict(self) -> Dict[str, object]:
        return {
            "config": self.config.to_dict(),
            "summary": self.summary,
            "matches": [match.to_dict() for match in self.matches],
            "best_by_goal": {goal_id: match.to_dict() for goal_id, match in self.best_by_goal.items()},
            "report": self.report,
            "warnings": list(self.warnings),
        }


@dataclass
class SuggestionSyncResult:
    """Outcome of :func:`run_suggestion_sync`."""

    users_processed: int
    promotions_available: int
    suggestions_created: int
    errors: List[Dict[str, Any]] = field(default_factory=list)
    removed: int = 0

    def to_dict(self) -> Dict[str, object]:
        return {
            "success": True,
            "users_processed": self.users_processed,
            "promotions_available": self.promotions_available,
            "suggestions_created": self.suggestions_created,
            "suggestions_removed": self.removed,
            "errors_count": len(self.errors),
        }


def run_matching_workflow(
    promotion_records: Iterable[Mapping[str, Any]],
    goal_records: Iterable[Mapping[str, Any]],
    config: Optional[MatcherConfig] = None,
    dismissed: Optional[AbstractSet[str]] = None,
) -> MatchingResult:
    """Normalise the input records, match them and build the report."""

    config = config or MatcherConfig()
    warnings: List[str] = []
    promotions = prepare_promotions(promotion_records, config, warnings)
    goals = prepare_goals(goal_records, include_completed=config.include_completed_goals)

    matches = find_matching_promotions(promotions, goals)
    if dismissed:
        matches = filter_dismissed(matches, dismissed)
    best_by_goal = best_promotions_by_goal(promotions, goals, config.user_miles, dismissed=dismissed)
    LOGGER.info(
        "Matched %d promotion(s) against %d goal(s): %d match(es)", len(promotions), len(goals), len(matches)
    )

    summary = summarise_promotions(promotions)
    report = build_report(config, goals, promotions, matches, best_by_goal=best_by_goal, warnings=warnings)
    return MatchingResult(
        config=config,
        promotions=promotions,
        goals=goals,
        matches=matches,
        best_by_goal=best_by_goal,
        summary=summary,
        report=report,
        warnings=warnings,
    )


def run_suggestion_sync(
    repository: Any,
    promotion_records: Iterable[Mapping[str, Any]],
    card_rules: Iterable[Mapping[str, Any]] = (),
    mileage_programs: Iterable[Mapping[str, Any]] = (),
    user_id: Optional[str] = None,
    max_per_program: int = 10,
) -> SuggestionSyncResult:
    """Recompute travel suggestions and store them in ``repository``.

    ``repository`` needs ``upsert(suggestion)`` and
    ``delete_inactive(promotion_ids)``, as offered by
    :class:`suggestion_repository.SuggestionRepository`.
    """

    balances = aggregate_balances(card_rules, mileage_programs, user_id=user_id)
    users = {balance.user_id for balance in balances}
    promotions = prepare_promotions(promotion_records, MatcherConfig(max_age_days=None, limit=None))

    if not promotions:
        LOGGER.info("No active promotions found")
        return SuggestionSyncResult(users_processed=len(users), promotions_available=0, suggestions_created=0)

    suggestions = build_travel_suggestions(balances, promotions, max_per_program=max_per_program)
    created = 0
    errors: List[Dict[str, Any]] = []
    for suggestion in suggestions:
        try:
            repository.upsert(suggestion)
        except sqlite3.Error as exc:
            LOGGER.error("Failed to store suggestion %s for %s: %s", suggestion.promotion_id, suggestion.user_id, exc)
            errors.append({"user_id": suggestion.user_id, "promotion_id": suggestion.promotion_id, "error": str(exc)})
        else:
            created += 1

    removed = repository.delete_inactive([promotion.id for promotion in promotions])
    LOGGER.info("Suggestion sync finished: %d created, %d removed", created, removed)
    return SuggestionSyncResult(
        users_processed=len(users),
        promotions_available=len(promotions),
        suggestions_created=created,
        errors=errors,
        removed=removed,
    )
