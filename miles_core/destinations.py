"""Destination knowledge base used to infer what a goal is about.

Every destination is declared once in :data:`DESTINATIONS`. The keyword
table and the region city lists consumed by the matcher are both derived
from it at import time and are read-only afterwards.
"""
from __future__ import annotations

from dataclasses import dataclass
import re
from types import MappingProxyType
from typing import Mapping, Optional, Pattern, Tuple

REGION_USA = "eua"
REGION_EUROPE = "europa"
REGION_NORTHEAST = "nordeste"
REGION_CARIBBEAN = "caribe"


@dataclass(frozen=True)
class Destination:
    """A canonical destination and the words a user may use for it.

    ``keywords`` take part in keyword matching; an empty tuple marks a
    destination that is only reachable through its region. ``region_aliases``
    are the spellings recognised as this city when a goal names a region and
    default to the lowercase canonical name.
    """

    name: str
    keywords: Tuple[str, ...] = ()
    region: Optional[str] = None
    region_aliases: Tuple[str, ...] = ()

    @property
    def region_names(self) -> Tuple[str, ...]:
        return self.region_aliases or (self.name.lower(),)


@dataclass(frozen=True)
class RegionPattern:
    """A region recognised in free text and the cities that belong to it."""

    name: str
    pattern: Pattern[str]
    destinations: Tuple[str, ...]


_USA = ("eua", "estados unidos", "usa")
_EUROPE = ("europa", "europe")
_SOUTH_AMERICA = ("america do sul", "south america")
_CARIBBEAN = ("caribe", "caribbean")

DESTINATIONS: Tuple[Destination, ...] = (
    # USA
    Destination("Miami", ("miami", *_USA, "flórida", "florida", "america"), REGION_USA),
    Destination("Orlando", ("orlando", *_USA, "disney", "flórida", "florida", "america"), REGION_USA),
    Destination("New York", ("nova york", "new york", "nyc", *_USA, "america", "manhattan"), REGION_USA),
    Destination("Los Angeles", ("los angeles", "la", *_USA, "california", "hollywood", "america"), REGION_USA),
    Destination("Las Vegas", ("las vegas", "vegas", *_USA, "america"), REGION_USA),
    # Europe
    Destination("Lisboa", ("lisboa", "lisbon", "portugal", *_EUROPE), REGION_EUROPE),
    Destination("Paris", ("paris", "frança", "france", *_EUROPE), REGION_EUROPE),
    Destination(
        "Londres",
        ("londres", "london", "inglaterra", "uk", "reino unido", *_EUROPE),
        REGION_EUROPE,
        ("londres", "london"),
    ),
    Destination("Madri", ("madri", "madrid", "espanha", "spain", *_EUROPE), REGION_EUROPE, ("madri", "madrid")),
    Destination("Roma", ("roma", "rome", "itália", "italy", *_EUROPE), REGION_EUROPE, ("roma", "rome")),
    Destination("Barcelona", ("barcelona", "espanha", "spain", *_EUROPE), REGION_EUROPE),
    Destination("Amsterdam", ("amsterdam", "holanda", "netherlands", *_EUROPE), REGION_EUROPE),
    # South America
    Destination("Buenos Aires", ("buenos aires", "argentina", *_SOUTH_AMERICA)),
    Destination("Santiago", ("santiago", "chile", *_SOUTH_AMERICA)),
    Destination("Lima", ("lima", "peru", *_SOUTH_AMERICA)),
    Destination("Bogotá", ("bogotá", "bogota", "colombia", "colômbia", *_SOUTH_AMERICA)),
    # Brazil
    Destination("São Paulo", ("são paulo", "sp", "sampa")),
    Destination("Rio de Janeiro", ("rio de janeiro", "rio", "rj")),
    Destination("Salvador", ("salvador", "bahia", "nordeste"), REGION_NORTHEAST),
    Destination("Recife", ("recife", "pernambuco", "nordeste"), REGION_NORTHEAST),
    Destination("Fortaleza", ("fortaleza", "ceará", "nordeste"), REGION_NORTHEAST),
    Destination("Natal", ("natal", "rn", "nordeste"), REGION_NORTHEAST),
    Destination("Maceió", region=REGION_NORTHEAST),
    Destination("João Pessoa", region=REGION_NORTHEAST),
    Destination("Florianópolis", ("florianópolis", "floripa", "santa catarina", "sc")),
    Destination("Porto Alegre", ("porto alegre", "poa", "rs", "rio grande do sul")),
    # Caribbean
    Destination("Cancun", ("cancun", "cancún", "méxico", "mexico", *_CARIBBEAN), REGION_CARIBBEAN, ("cancun", "cancún")),
    Destination("Punta Cana", ("punta cana", "república dominicana", *_CARIBBEAN), REGION_CARIBBEAN),
    Destination("Aruba", ("aruba", *_CARIBBEAN), REGION_CARIBBEAN),
    Destination("Curaçao", region=REGION_CARIBBEAN),
    # Asia and Middle East
    Destination("Tóquio", ("tóquio", "tokyo", "japão", "japan", "ásia", "asia")),
    Destination("Dubai", ("dubai", "emirados", "uae", "oriente médio", "middle east")),
)

# Region detection order matters: the first matching region wins.
_REGION_EXPRESSIONS: Tuple[Tuple[str, str], ...] = (
    (REGION_USA, r"\beua\b|\bestados unidos\b|\busa\b|\bamerica\b"),
    (REGION_EUROPE, r"\beuropa\b|\beurope\b"),
    (REGION_NORTHEAST, r"\bnordeste\b"),
    (REGION_CARIBBEAN, r"\bcaribe\b|\bcaribbean\b"),
)


def _build_keyword_table() -> Mapping[str, Tuple[str, ...]]:
    table = {destination.name: destination.keywords for destination in DESTINATIONS if destination.keywords}
    return MappingProxyType(table)


def _build_region_patterns() -> Tuple[RegionPattern, ...]:
    patterns = []
    for region, expression in _REGION_EXPRESSIONS:
        cities = tuple(
            alias
            for destination in DESTINATIONS
            if destination.region == region
            for alias in destination.region_names
        )
        patterns.append(RegionPattern(region, re.compile(expression, re.IGNORECASE), cities))
    return tuple(patterns)


DESTINATION_KEYWORDS: Mapping[str, Tuple[str, ...]] = _build_keyword_table()
REGION_PATTERNS: Tuple[RegionPattern, ...] = _build_region_patterns()
