"""Travel suggestions built from the miles a user already holds."""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

import pandas as pd

from .config import parse_active_flag, parse_miles
from .matcher import coerce_miles, is_redeemable
from .models import ScrapedPromotion, TravelSuggestion, UserMileageBalance

LOGGER = logging.getLogger(__name__)

PROGRAM_ANY = "Diversos"
PROGRAM_LIVELO = "Livelo"

# Checked in order, first hit wins.
_PROGRAM_ALIASES: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("smiles",), "Smiles"),
    (("latam", "multiplus"), "LATAM Pass"),
    (("azul", "tudoazul"), "TudoAzul"),
    (("livelo",), PROGRAM_LIVELO),
    (("esfera",), "Esfera"),
)

_BANK_PROGRAMS: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("bradesco",), PROGRAM_LIVELO),
    (("itau", "itaú"), PROGRAM_LIVELO),
    (("bb", "banco do brasil"), PROGRAM_LIVELO),
    (("santander",), "Esfera"),
    (("nubank",), "Smiles"),
    (("inter",), "Smiles"),
    (("c6",), "C6 Points"),
    (("azul",), "TudoAzul"),
    (("latam",), "LATAM Pass"),
    (("gol", "smiles"), "Smiles"),
)


def normalize_program(programa: str) -> str:
    """Map the many spellings of a loyalty program to its canonical name."""

    normalized = programa.lower().strip()
    for aliases, canonical in _PROGRAM_ALIASES:
        if any(alias in normalized for alias in aliases):
            return canonical
    return programa


def infer_program_from_bank(bank_name: str) -> str:
    """Guess the program a credit card accrues into from its bank name."""

    normalized = bank_name.lower()
    for aliases, program in _BANK_PROGRAMS:
        if any(alias in normalized for alias in aliases):
            return program
    return PROGRAM_LIVELO


def programs_match(user_program: str, promo_program: str) -> bool:
    """Whether miles held in ``user_program`` can pay for a promotion."""

    normalized_user = normalize_program(user_program)
    normalized_promo = normalize_program(promo_program)
    if normalized_user == normalized_promo:
        return True
    if normalized_promo == PROGRAM_ANY:
        return True
    # Livelo points transfer to the airline programs.
    return normalized_user == PROGRAM_LIVELO


def format_miles(value: float) -> str:
    """Format a miles amount the pt-BR way, e.g. ``20.000`` or ``12.500,5``."""

    number = float(value)
    if number.is_integer():
        return f"{int(number):,}".replace(",", ".")
    text = f"{number:,.2f}".translate(str.maketrans({",": ".", ".": ","}))
    return text.rstrip("0").rstrip(",")


def generate_personalized_message(destino: str, milhas_min: float, programa: str, saldo: float) -> str:
    leftover = saldo - milhas_min
    miles = format_miles(milhas_min)
    balance = format_miles(saldo)

    if leftover >= milhas_min * 0.5:
        return (
            f"Ótima oportunidade! Você pode viajar para {destino} usando {miles} milhas {programa}. "
            f"Com {balance} milhas, ainda sobram {format_miles(leftover)} para outra viagem!"
        )
    if leftover > 0:
        return (
            f"Você pode viajar para {destino} usando {miles} milhas {programa}. "
            f"Você possui {balance} milhas disponíveis."
        )
    return f"Viagem para {destino} por {miles} milhas {programa}. Você possui {balance} milhas disponíveis."


def _positive_balance(value: Any) -> Optional[float]:
    number = parse_miles(value)
    if number is None or number <= 0:
        return None
    return number


def _is_active(row: Mapping[str, Any]) -> bool:
    return parse_active_flag(row.get("is_active"))


def aggregate_balances(
    card_rules: Iterable[Mapping[str, Any]],
    mileage_programs: Iterable[Mapping[str, Any]],
    user_id: Optional[str] = None,
) -> List[UserMileageBalance]:
    """Sum the miles of every user per loyalty program.

    Card rules contribute ``existing_miles`` under the program inferred from
    ``bank_name``; mileage programs contribute ``balance_miles`` under their
    normalised ``program_name``. Inactive rows and empty balances are ignored.
    """

    rows: List[Dict[str, Any]] = []
    for rule in card_rules:
        miles = _positive_balance(rule.get("existing_miles"))
        if not _is_active(rule) or miles is None or rule.get("user_id") is None:
            continue
        rows.append(
            {
                "user_id": str(rule["user_id"]),
                "programa": infer_program_from_bank(str(rule.get("bank_name") or "")),
                "saldo": miles,
            }
        )
    for program in mileage_programs:
        miles = _positive_balance(program.get("balance_miles"))
        if not _is_active(program) or miles is None or program.get("user_id") is None:
            continue
        rows.append(
            {
                "user_id": str(program["user_id"]),
                "programa": normalize_program(str(program.get("program_name") or "")),
                "saldo": miles,
            }
        )

    if user_id is not None:
        rows = [row for row in rows if row["user_id"] == str(user_id)]
    if not rows:
        return []

    df = pd.DataFrame.from_records(rows)
    grouped = df.groupby(["user_id", "programa"], sort=False, as_index=False)["saldo"].sum()
    return [
        UserMileageBalance(user_id=str(row["user_id"]), programa=str(row["programa"]), saldo=float(row["saldo"]))
        for row in grouped.to_dict("records")
    ]


def build_travel_suggestions(
    balances: Iterable[UserMileageBalance],
    promotions: Sequence[ScrapedPromotion],
    max_per_program: int = 10,
    user_id: Optional[str] = None,
) -> List[TravelSuggestion]:
    """Suggest the cheapest affordable promotions for every balance.

    Each (user, program) balance yields at most ``max_per_program``
    suggestions. A promotion is suggested to a user only once even when
    several of their balances could pay for it.
    """

    ordered = sorted(
        (promotion for promotion in promotions if coerce_miles(promotion.milhas_min) is not None),
        key=lambda promotion: float(promotion.milhas_min),
    )

    suggestions: List[TravelSuggestion] = []
    seen: Set[Tuple[str, str]] = set()
    for balance in balances:
        if user_id is not None and balance.user_id != str(user_id):
            continue
        affordable = [
            promotion
            for promotion in ordered
            if is_redeemable(promotion, balance.saldo) and programs_match(balance.programa, promotion.programa)
        ]
        for promotion in affordable[:max_per_program]:
            key = (balance.user_id, promotion.id)
            if key in seen:
                continue
            seen.add(key)
            suggestions.append(
                TravelSuggestion(
                    user_id=balance.user_id,
                    promotion_id=promotion.id,
                    saldo_usuario=balance.saldo,
                    programa_usuario=balance.programa,
                    mensagem=generate_personalized_message(
                        promotion.destino, float(promotion.milhas_min), promotion.programa, balance.saldo
                    ),
                )
            )
    LOGGER.debug("Built %d travel suggestions", len(suggestions))
    return suggestions
