"""Match scraped promotions against a user's mileage goals.

A pair is scored by the first tier that succeeds:

* exact destination named in the goal text (100)
* a keyword of the destination found in the goal text (95 when the keyword
  is the destination itself, 80 otherwise)
* a region named in the goal text that contains the destination (70)

Pairs that reach no tier are not matches. Everything here is pure: inputs
are never mutated and the only shared state is the read-only destination
table.
"""
from __future__ import annotations

import logging
import math
from typing import AbstractSet, Dict, Iterable, List, Optional, Sequence

from .destinations import DESTINATION_KEYWORDS, REGION_PATTERNS
from .models import MatchResult, MileageGoal, PromotionMatch, ScrapedPromotion

LOGGER = logging.getLogger(__name__)

EXACT_SCORE = 100
KEYWORD_EXACT_SCORE = 95
KEYWORD_SCORE = 80
REGION_SCORE = 70


def _text(value: object) -> str:
    return value if isinstance(value, str) else ""


def coerce_miles(value: object) -> Optional[float]:
    """Return ``value`` as a usable miles amount or ``None``."""

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    number = float(value)
    if math.isnan(number) or math.isinf(number) or number < 0:
        return None
    return number


def _goal_text(goal: MileageGoal) -> str:
    return f"{_text(goal.name)} {_text(goal.description)}".lower()


def _match_exact(destination: str, goal_text: str, promotion: ScrapedPromotion) -> Optional[MatchResult]:
    if destination in goal_text:
        return MatchResult(EXACT_SCORE, f"Destino exato: {promotion.destino}")
    return None


def _match_keyword(destination: str, goal_text: str) -> Optional[MatchResult]:
    for canonical, keywords in DESTINATION_KEYWORDS.items():
        canonical_lower = canonical.lower()
        if canonical_lower not in destination and destination not in canonical_lower:
            continue
        for keyword in keywords:
            if keyword in goal_text:
                score = KEYWORD_EXACT_SCORE if keyword == destination else KEYWORD_SCORE
                return MatchResult(score, f'Corresponde a "{keyword}" na sua meta')
    return None


def _match_region(destination: str, goal_text: str) -> Optional[MatchResult]:
    for region in REGION_PATTERNS:
        if not region.pattern.search(goal_text):
            continue
        if any(city in destination or destination in city for city in region.destinations):
            return MatchResult(REGION_SCORE, "Região correspondente")
    return None


def check_match(promotion: ScrapedPromotion, goal: MileageGoal) -> Optional[MatchResult]:
    """Score a single promotion/goal pair, or return ``None`` when unrelated."""

    destination = _text(promotion.destino).lower()
    if not destination.strip():
        return None
    goal_text = _goal_text(goal)

    return (
        _match_exact(destination, goal_text, promotion)
        or _match_keyword(destination, goal_text)
        or _match_region(destination, goal_text)
    )


def find_matching_promotions(
    promotions: Sequence[ScrapedPromotion], goals: Sequence[MileageGoal]
) -> List[PromotionMatch]:
    """Return every matching pair, best score first and cheapest first on ties."""

    matches: List[PromotionMatch] = []
    for promotion in promotions:
        if coerce_miles(promotion.milhas_min) is None:
            LOGGER.debug("Skipping promotion %s with invalid milhas_min %r", promotion.id, promotion.milhas_min)
            continue
        for goal in goals:
            result = check_match(promotion, goal)
            if result is None:
                continue
            matches.append(
                PromotionMatch(
                    promotion=promotion,
                    goal=goal,
                    match_score=result.score,
                    match_reason=result.reason,
                )
            )

    matches.sort(key=lambda match: (-match.match_score, float(match.promotion.milhas_min)))
    return matches


def is_redeemable(promotion: ScrapedPromotion, user_miles: float) -> bool:
    required = coerce_miles(promotion.milhas_min)
    balance = coerce_miles(user_miles)
    if required is None or balance is None:
        return False
    return required <= balance


def _pick_best(matches: Sequence[PromotionMatch], user_miles: float) -> Optional[PromotionMatch]:
    for match in matches:
        if is_redeemable(match.promotion, user_miles):
            return match
    return matches[0] if matches else None


def get_best_promotion_for_goal(
    promotions: Sequence[ScrapedPromotion], goal: MileageGoal, user_miles: float
) -> Optional[PromotionMatch]:
    """Pick the match to feature for ``goal``.

    A promotion the user can already redeem wins over any stronger textual
    match they cannot afford yet. Without redeemable matches the best overall
    match is returned as an aspirational target.
    """

    return _pick_best(find_matching_promotions(promotions, [goal]), user_miles)


def best_promotions_by_goal(
    promotions: Sequence[ScrapedPromotion],
    goals: Iterable[MileageGoal],
    user_miles: float,
    dismissed: Optional[AbstractSet[str]] = None,
) -> Dict[str, PromotionMatch]:
    """Best promotion per goal id; goals without any match are left out.

    Dismissed promotions never become a goal's best offer.
    """

    best: Dict[str, PromotionMatch] = {}
    for goal in goals:
        matches = filter_dismissed(find_matching_promotions(promotions, [goal]), dismissed or set())
        match = _pick_best(matches, user_miles)
        if match is not None:
            best[goal.id] = match
    return best


def active_goals(goals: Iterable[MileageGoal]) -> List[MileageGoal]:
    return [goal for goal in goals if not goal.is_completed]


def dismissal_key(match: PromotionMatch) -> str:
    """Key hiding every promotion to the same destination for one goal."""

    return f"{match.goal.id}:{_text(match.promotion.destino).lower()}"


def filter_dismissed(matches: Iterable[PromotionMatch], dismissed: AbstractSet[str]) -> List[PromotionMatch]:
    """Drop matches dismissed by promotion id or by goal and destination."""

    if not dismissed:
        return list(matches)
    return [
        match
        for match in matches
        if match.promotion.id not in dismissed and dismissal_key(match) not in dismissed
    ]
