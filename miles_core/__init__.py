"""Promotion matching core exposing reusable workflows."""
from .config import MatcherConfig, create_config, create_config_from_form, create_config_from_text
from .matcher import check_match, find_matching_promotions, get_best_promotion_for_goal
from .models import MileageGoal, PromotionMatch, ScrapedPromotion
from .workflow import MatchingResult, SuggestionSyncResult, run_matching_workflow, run_suggestion_sync

__all__ = [
    "MatcherConfig",
    "MatchingResult",
    "MileageGoal",
    "PromotionMatch",
    "ScrapedPromotion",
    "SuggestionSyncResult",
    "check_match",
    "create_config",
    "create_config_from_form",
    "create_config_from_text",
    "find_matching_promotions",
    "get_best_promotion_for_goal",
    "run_matching_workflow",
    "run_suggestion_sync",
]
