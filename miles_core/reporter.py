"""Reporting helpers for promotion matches."""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence

from .config import MatcherConfig
from .matcher import is_redeemable
from .models import MileageGoal, PromotionMatch, ScrapedPromotion
from .processor import summarise_promotions
from .suggestions import format_miles

TOP_MATCHES = 5


def generate_match_table(matches: Iterable[PromotionMatch], user_miles: float = 0) -> str:
    """Return a markdown-style table with the best matches."""

    headers = ["Destino", "Programa", "Milhas", "Pontuação", "Meta", "Motivo", "Resgatável"]
    rows: List[str] = [
        "| " + " | ".join(headers) + " |",
        "| " + " | ".join(["---"] * len(headers)) + " |",
    ]

    match_list = list(matches)
    if not match_list:
        rows.append("| Nenhuma correspondência |" + " |" * (len(headers) - 1))
        return "\n".join(rows)

    for match in match_list:
        promotion = match.promotion
        columns = [
            promotion.destino,
            promotion.programa or "–",
            format_miles(promotion.milhas_min),
            str(match.match_score),
            match.goal.name,
            match.match_reason,
            "sim" if is_redeemable(promotion, user_miles) else "não",
        ]
        rows.append("| " + " | ".join(columns) + " |")
    return "\n".join(rows)


def _goal_line(goal: MileageGoal, best: Optional[PromotionMatch]) -> str:
    line = (
        f"- {goal.name}: {format_miles(goal.current_miles)} de {format_miles(goal.target_miles)} milhas"
        f" ({goal.progress * 100:.0f}%)"
    )
    if best is not None:
        line += f" → melhor oferta: {best.promotion.destino} por {format_miles(best.promotion.milhas_min)} milhas"
    return line


def build_report(
    config: MatcherConfig,
    goals: Sequence[MileageGoal],
    promotions: List[ScrapedPromotion],
    matches: List[PromotionMatch],
    best_by_goal: Optional[Dict[str, PromotionMatch]] = None,
    warnings: Sequence[str] | None = None,
) -> str:
    """Create a text report summarising the matches."""

    best_by_goal = best_by_goal or {}
    summary = summarise_promotions(promotions)
    warning_messages = [message.strip() for message in (warnings or []) if message]
    lines: List[str] = [
        "Relatório de promoções",
        "======================",
    ]
    if warning_messages:
        lines.append("")
        lines.extend(f"AVISO: {message}" for message in warning_messages)

    lines.append("")
    lines.append(f"Saldo disponível: {format_miles(config.user_miles)} milhas")
    if config.programa:
        lines.append(f"Programa: {config.programa}")
    if config.search_term:
        lines.append(f"Busca: {config.search_term}")
    if config.max_miles is not None:
        lines.append(f"Máximo de milhas: {format_miles(config.max_miles)}")

    lines.append("")
    lines.append("Metas:")
    if goals:
        lines.extend(_goal_line(goal, best_by_goal.get(goal.id)) for goal in goals)
    else:
        lines.append("- Nenhuma meta ativa")

    lines.append("")
    lines.append("Resumo:")
    if summary["count"] == 0:
        lines.append("- Nenhuma promoção disponível")
    else:
        lines.append(f"- {summary['count']} promoções analisadas")
        lines.append(f"- Menor resgate: {format_miles(summary['min_miles'])} milhas")
        lines.append(f"- Média: {format_miles(round(summary['average_miles']))} milhas")

    lines.append("")
    if not matches:
        lines.append("Nenhuma promoção corresponde às suas metas.")
        return "\n".join(lines)

    lines.append("Melhores correspondências:")
    lines.append(generate_match_table(matches[:TOP_MATCHES], config.user_miles))

    lines.append("")
    lines.append("Links:")
    for match in matches[:TOP_MATCHES]:
        if match.promotion.link:
            lines.append(f"- {match.promotion.destino}: {match.promotion.link}")

    return "\n".join(lines)
