"""Configuration helpers for promotion matching and suggestions."""
from __future__ import annotations

from dataclasses import dataclass, field
import math
import os
import re
from typing import Any, Dict, Mapping, Optional

DEFAULT_MAX_AGE_DAYS = 21
DEFAULT_LIMIT = 20
DEFAULT_SUGGESTIONS_PER_PROGRAM = 10

_TRUE_VALUES = {"1", "true", "on", "yes", "sim", "s"}
_FALSE_VALUES = {"false", "0", "no", "nao", "não"}


@dataclass
class MatcherConfig:
    """Filters applied before matching plus the user's current balance."""

    max_age_days: Optional[int] = DEFAULT_MAX_AGE_DAYS
    limit: Optional[int] = DEFAULT_LIMIT
    min_miles: Optional[float] = None
    max_miles: Optional[float] = None
    search_term: str = ""
    programa: Optional[str] = None
    user_miles: float = 0
    include_completed_goals: bool = False
    max_suggestions_per_program: int = DEFAULT_SUGGESTIONS_PER_PROGRAM
    raw_request: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serialisable version of the configuration."""

        return {
            "max_age_days": self.max_age_days,
            "limit": self.limit,
            "min_miles": self.min_miles,
            "max_miles": self.max_miles,
            "search_term": self.search_term,
            "programa": self.programa,
            "user_miles": self.user_miles,
            "include_completed_goals": self.include_completed_goals,
            "max_suggestions_per_program": self.max_suggestions_per_program,
        }


@dataclass
class Settings:
    """Process-level settings read from the environment."""

    db_path: str
    log_level: str = "INFO"


def load_settings() -> Settings:
    return Settings(
        db_path=os.getenv("MILES_DB_PATH", os.path.join(os.getcwd(), "suggestions.db")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def parse_miles(value: Any) -> Optional[float]:
    """Parse a miles amount given as a number or a pt-BR formatted string.

    Returns ``None`` for anything that is not a finite, non-negative amount.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        cleaned = str(value).lower()
        for unit in ("milhas", "pontos", "pts"):
            cleaned = cleaned.replace(unit, "")
        cleaned = cleaned.strip()
        cleaned = re.sub(r"(?<=\d)\.(?=\d{3}(?:\D|$))", "", cleaned)
        cleaned = cleaned.replace(",", ".")
        try:
            number = float(cleaned)
        except ValueError:
            return None
    if math.isnan(number) or math.isinf(number) or number < 0:
        return None
    return number


def _parse_int(value: Any) -> Optional[int]:
    number = parse_miles(value)
    if number is None:
        return None
    return int(number)


def parse_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in _TRUE_VALUES


def parse_active_flag(value: Any) -> bool:
    """Read an ``is_active`` column; a missing value counts as active."""

    if value is None or (isinstance(value, float) and math.isnan(value)):
        return True
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_VALUES
    return bool(value)


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def create_config_from_form(form_data: Mapping[str, Any]) -> MatcherConfig:
    """Create a configuration object from a form or JSON filter payload."""

    config = MatcherConfig(raw_request=dict(form_data))

    if "max_age_days" in form_data:
        config.max_age_days = _parse_int(form_data.get("max_age_days"))
    if "limit" in form_data:
        config.limit = _parse_int(form_data.get("limit"))

    config.min_miles = parse_miles(form_data.get("min_miles"))
    config.max_miles = parse_miles(form_data.get("max_miles"))
    config.search_term = str(form_data.get("search_term") or form_data.get("search") or "").strip()
    config.programa = _optional_str(form_data.get("programa"))
    config.user_miles = parse_miles(form_data.get("user_miles")) or 0
    config.include_completed_goals = parse_flag(form_data.get("include_completed_goals"))

    per_program = _parse_int(form_data.get("max_suggestions_per_program"))
    if per_program is not None:
        config.max_suggestions_per_program = per_program
    return config


_AMOUNT = r"(?P<amount>\d[\d.,]*)\s*(?P<thousands>mil\b)?\s*"
_MAX_MILES_PATTERN = re.compile(r"\b(?:até|ate|no máximo|no maximo|max)\s*" + _AMOUNT + r"(?:milhas|pontos|pts)")
_BALANCE_PATTERN = re.compile(r"\b(?:tenho|possuo|saldo de)\s*" + _AMOUNT + r"(?:milhas|pontos|pts)?")
_PROGRAM_PATTERN = re.compile(r"\b(smiles|latam pass|latam|multiplus|tudoazul|azul|livelo|esfera)\b")
_DESTINATION_PATTERN = re.compile(
    r"\b(?:para|pra|destino)\s+(?P<destination>[a-zà-ú][a-zà-ú\s]{2,}?)"
    r"(?=\s+(?:com|usando|até|ate|por|em|no|na|e)\b|[,.!?;]|$)"
)


def _amount_from_match(match: re.Match) -> Optional[float]:
    amount = parse_miles(match.group("amount").rstrip(".,"))
    if amount is None:
        return None
    if match.group("thousands"):
        amount *= 1000
    return amount


def create_config_from_text(message: str) -> MatcherConfig:
    """Create a configuration from a short free-form chat message.

    Understands phrases such as "até 50.000 milhas", "tenho 30 mil milhas",
    a loyalty program name and "para <destino>".
    """

    # suggestions imports this module for its parsers
    from .suggestions import normalize_program

    config = MatcherConfig(raw_request={"message": message})
    message_lower = message.lower()

    max_match = _MAX_MILES_PATTERN.search(message_lower)
    if max_match:
        config.max_miles = _amount_from_match(max_match)

    balance_match = _BALANCE_PATTERN.search(message_lower)
    if balance_match:
        config.user_miles = _amount_from_match(balance_match) or 0

    program_match = _PROGRAM_PATTERN.search(message_lower)
    if program_match:
        config.programa = normalize_program(program_match.group(1))

    destination_match = _DESTINATION_PATTERN.search(message_lower)
    if destination_match:
        config.search_term = destination_match.group("destination").strip()

    return config


def create_config(data: Mapping[str, Any] | str) -> MatcherConfig:
    """Unified helper that accepts either dict-like data or raw text."""

    if isinstance(data, Mapping):
        return create_config_from_form(data)
    if isinstance(data, str):
        return create_config_from_text(data)
    raise TypeError("expected a mapping or string")
