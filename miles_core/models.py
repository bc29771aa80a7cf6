"""Shared data structures used by the matcher, processor and suggestions."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class MileageGoal:
    """A user's named savings target."""

    id: str
    name: str
    description: Optional[str] = None
    target_miles: float = 0
    current_miles: float = 0
    is_completed: bool = False

    @property
    def progress(self) -> float:
        """Fraction of the target already saved, capped at 1."""

        if not self.target_miles or self.target_miles <= 0:
            return 0.0
        return min(float(self.current_miles) / float(self.target_miles), 1.0)

    @property
    def remaining_miles(self) -> float:
        return max(float(self.target_miles) - float(self.current_miles), 0.0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "target_miles": self.target_miles,
            "current_miles": self.current_miles,
            "is_completed": self.is_completed,
        }


@dataclass
class ScrapedPromotion:
    """A travel redemption offer ingested from an external source."""

    id: str
    programa: str
    destino: str
    milhas_min: float
    origem: Optional[str] = None
    link: str = ""
    titulo: Optional[str] = None
    descricao: Optional[str] = None
    fonte: str = ""
    created_at: Optional[str] = None
    is_active: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "programa": self.programa,
            "origem": self.origem,
            "destino": self.destino,
            "milhas_min": self.milhas_min,
            "link": self.link,
            "titulo": self.titulo,
            "descricao": self.descricao,
            "fonte": self.fonte,
            "created_at": self.created_at,
            "is_active": self.is_active,
        }


@dataclass(frozen=True)
class MatchResult:
    """Score and explanation for a single promotion/goal pair."""

    score: int
    reason: str


@dataclass
class PromotionMatch:
    """A promotion paired with the goal it serves. Never persisted."""

    promotion: ScrapedPromotion
    goal: MileageGoal
    match_score: int
    match_reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "promotion": self.promotion.to_dict(),
            "goal": self.goal.to_dict(),
            "match_score": self.match_score,
            "match_reason": self.match_reason,
        }


@dataclass
class UserMileageBalance:
    """Miles a user holds in one loyalty program."""

    user_id: str
    programa: str
    saldo: float

    def to_dict(self) -> Dict[str, Any]:
        return {"user_id": self.user_id, "programa": self.programa, "saldo": self.saldo}


@dataclass
class TravelSuggestion:
    """A redeemable promotion suggested to a user for one of their balances."""

    user_id: str
    promotion_id: str
    saldo_usuario: float
    programa_usuario: str
    mensagem: str
    is_viewed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "promotion_id": self.promotion_id,
            "saldo_usuario": self.saldo_usuario,
            "programa_usuario": self.programa_usuario,
            "mensagem": self.mensagem,
            "is_viewed": self.is_viewed,
        }
