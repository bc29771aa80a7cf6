"""Normalisation of raw promotion and goal records before matching."""
from __future__ import annotations

from datetime import datetime
import logging
import math
from typing import Any, Dict, Iterable, List, Mapping, Optional

import pandas as pd

from .config import MatcherConfig, parse_active_flag, parse_flag, parse_miles
from .matcher import active_goals
from .models import MileageGoal, ScrapedPromotion
from .suggestions import normalize_program

LOGGER = logging.getLogger(__name__)

PROMOTION_COLUMNS = [
    "id",
    "programa",
    "origem",
    "destino",
    "milhas_min",
    "link",
    "titulo",
    "descricao",
    "fonte",
    "created_at",
    "is_active",
]

_SEARCH_COLUMNS = ["titulo", "descricao", "programa", "origem", "destino"]


def _clean(value: Any) -> Any:
    """Turn pandas' missing markers back into ``None``."""

    if value is None or value is pd.NaT:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


def _optional_str(value: Any) -> Optional[str]:
    value = _clean(value)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _is_active_flag(value: Any) -> bool:
    return parse_active_flag(_clean(value))


def _parse_timestamp(value: Any) -> pd.Timestamp:
    if value is None or value == "":
        return pd.NaT
    try:
        timestamp = pd.Timestamp(value)
    except (TypeError, ValueError):
        return pd.NaT
    if pd.isna(timestamp):
        return pd.NaT
    if timestamp.tzinfo is None:
        return timestamp.tz_localize("UTC")
    return timestamp.tz_convert("UTC")


def _miles_value(value: float) -> float:
    return int(value) if float(value).is_integer() else float(value)


def promotions_to_dataframe(records: Iterable[Mapping[str, Any]]) -> pd.DataFrame:
    """Convert raw promotion records into a normalised :class:`~pandas.DataFrame`."""

    rows: List[Dict[str, Any]] = []
    for record in records:
        rows.append({column: record.get(column) for column in PROMOTION_COLUMNS})

    df = pd.DataFrame(rows, columns=PROMOTION_COLUMNS, dtype=object)
    df["milhas_min"] = pd.to_numeric(df["milhas_min"].map(parse_miles), errors="coerce")
    df["created_at"] = pd.to_datetime(df["created_at"].map(_parse_timestamp), utc=True)
    df["is_active"] = df["is_active"].map(_is_active_flag).astype(bool)
    return df


def drop_malformed(df: pd.DataFrame, warnings: Optional[List[str]] = None) -> pd.DataFrame:
    """Remove rows without a destination or without a valid miles amount."""

    if df.empty:
        return df
    has_destination = df["destino"].map(lambda value: bool(_optional_str(value)))
    has_miles = df["milhas_min"].notna()
    valid = has_destination & has_miles
    dropped = int((~valid).sum())
    if dropped:
        LOGGER.info("Dropping %d malformed promotion record(s)", dropped)
        if warnings is not None:
            warnings.append(f"{dropped} promoção(ões) ignorada(s) por destino ou milhas inválidos.")
    return df[valid]


def deduplicate_promotions(df: pd.DataFrame) -> pd.DataFrame:
    """Keep the first record of every promotion id."""

    if df.empty:
        return df
    duplicated = df["id"].notna() & df["id"].duplicated()
    return df[~duplicated]


def filter_active(df: pd.DataFrame) -> pd.DataFrame:
    if df.empty:
        return df
    return df[df["is_active"]]


def filter_recent(df: pd.DataFrame, max_age_days: Optional[int], now: Optional[datetime] = None) -> pd.DataFrame:
    """Drop promotions older than ``max_age_days``. Undated rows are kept."""

    if max_age_days is None or df.empty:
        return df
    reference = pd.Timestamp(now) if now is not None else pd.Timestamp.now(tz="UTC")
    if reference.tzinfo is None:
        reference = reference.tz_localize("UTC")
    cutoff = reference - pd.Timedelta(days=max_age_days)
    return df[df["created_at"].isna() | (df["created_at"] >= cutoff)]


def filter_by_miles_range(
    df: pd.DataFrame, min_miles: Optional[float] = None, max_miles: Optional[float] = None
) -> pd.DataFrame:
    if df.empty:
        return df
    if min_miles is not None:
        df = df[df["milhas_min"] >= min_miles]
    if max_miles is not None:
        df = df[df["milhas_min"] <= max_miles]
    return df


def filter_by_search(df: pd.DataFrame, term: str) -> pd.DataFrame:
    """Case-insensitive search over the descriptive promotion fields."""

    term = (term or "").strip().lower()
    if not term or df.empty:
        return df
    haystack = df[_SEARCH_COLUMNS].fillna("").astype(str).agg(" ".join, axis=1).str.lower()
    return df[haystack.str.contains(term, regex=False)]


def filter_by_program(df: pd.DataFrame, programa: Optional[str]) -> pd.DataFrame:
    if not programa or df.empty:
        return df
    wanted = normalize_program(programa)
    programs = df["programa"].map(lambda value: normalize_program(_optional_str(value) or ""))
    return df[programs == wanted]


def _row_to_promotion(row: Mapping[str, Any]) -> ScrapedPromotion:
    created_at = _clean(row.get("created_at"))
    return ScrapedPromotion(
        id=_optional_str(row.get("id")) or "",
        programa=_optional_str(row.get("programa")) or "",
        destino=_optional_str(row.get("destino")) or "",
        milhas_min=_miles_value(row["milhas_min"]),
        origem=_optional_str(row.get("origem")),
        link=_optional_str(row.get("link")) or "",
        titulo=_optional_str(row.get("titulo")),
        descricao=_optional_str(row.get("descricao")),
        fonte=_optional_str(row.get("fonte")) or "",
        created_at=created_at.isoformat() if created_at is not None else None,
        is_active=bool(row.get("is_active", True)),
    )


def prepare_promotions(
    records: Iterable[Mapping[str, Any]],
    config: Optional[MatcherConfig] = None,
    warnings: Optional[List[str]] = None,
    now: Optional[datetime] = None,
) -> List[ScrapedPromotion]:
    """Full processing pipeline returning promotions sorted by miles."""

    config = config or MatcherConfig()
    df = promotions_to_dataframe(records)
    df = drop_malformed(df, warnings)
    df = deduplicate_promotions(df)
    df = filter_active(df)
    df = filter_recent(df, config.max_age_days, now=now)
    df = filter_by_miles_range(df, config.min_miles, config.max_miles)
    df = filter_by_search(df, config.search_term)
    df = filter_by_program(df, config.programa)

    if df.empty:
        return []

    df = df.sort_values("milhas_min", kind="stable")
    if config.limit is not None:
        df = df.head(config.limit)
    return [_row_to_promotion(row) for row in df.to_dict("records")]


def prepare_goals(records: Iterable[Mapping[str, Any]], include_completed: bool = False) -> List[MileageGoal]:
    """Convert raw goal records, skipping completed goals unless asked not to."""

    goals: List[MileageGoal] = []
    for record in records:
        name = _optional_str(record.get("name"))
        description = _optional_str(record.get("description"))
        if name is None and description is None:
            LOGGER.debug("Skipping goal %r without name or description", record.get("id"))
            continue
        goals.append(
            MileageGoal(
                id=_optional_str(record.get("id")) or "",
                name=name or "",
                description=description,
                target_miles=parse_miles(record.get("target_miles")) or 0,
                current_miles=parse_miles(record.get("current_miles")) or 0,
                is_completed=parse_flag(record.get("is_completed")),
            )
        )
    if include_completed:
        return goals
    return active_goals(goals)


def summarise_promotions(promotions: List[ScrapedPromotion]) -> Dict[str, float]:
    """Return simple statistics across the given promotions."""

    miles = [float(promotion.milhas_min) for promotion in promotions]
    if not miles:
        return {"count": 0, "average_miles": 0.0, "min_miles": 0.0}
    return {
        "count": len(miles),
        "average_miles": float(sum(miles) / len(miles)),
        "min_miles": float(min(miles)),
    }
