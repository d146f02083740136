"""
Attribute Normalizer (v1.0.0)
Maps free-text color, garment type and title into small canonical tag sets.

Each classifier is an ordered keyword table evaluated top to bottom: the first
category with a keyword contained in the upper-cased text wins, otherwise the
classifier's default applies. The tables are business data, so they can be
replaced from a JSON file without touching the code.
"""
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

logger = logging.getLogger(__name__)

KeywordTable = List[Tuple[str, Tuple[str, ...]]]


# ==================== CANONICAL TAGS ====================

NEUTRAL_LIGHT = "NEUTRAL_LIGHT"
NEUTRAL_DARK = "NEUTRAL_DARK"
DENIM = "DENIM"
UNKNOWN_COLOR = "UNKNOWN"
OTHER_COLOR = "OTHER"

# Colors that never start or break a color story.
NEUTRAL_COLORS = frozenset({NEUTRAL_LIGHT, NEUTRAL_DARK, DENIM})

TOP = "TOP"
BOTTOM = "BOTTOM"
FULL_BODY = "FULL_BODY"
OUTERWEAR = "OUTERWEAR"
SHOES = "SHOES"
ACCESSORY = "ACCESSORY"

FORMAL = "FORMAL"
BEACH = "BEACH"
CASUAL_SPORT = "CASUAL_SPORT"
CASUAL_CHIC = "CASUAL_CHIC"


# ==================== DEFAULT KEYWORD TABLES ====================

COLOR_FAMILY_TABLE: KeywordTable = [
    (NEUTRAL_LIGHT, ("BLANCO", "WHITE", "CRUDO", "MARFIL", "NATURAL")),
    (NEUTRAL_DARK, ("NEGRO", "BLACK", "GRIS", "GREY", "MELANGE", "ACERO")),
    (DENIM, ("JEAN", "DENIM", "INDIGO")),
    ("BLUE", ("AZUL", "BLUE", "MARINO", "CELESTE", "PETROLEO")),
    ("PINK", ("ROSA", "PINK", "FUCSIA", "SALMON", "MAGENTA")),
    ("RED", ("ROJO", "RED", "BORDO", "RUBI")),
    ("GREEN", ("VERDE", "GREEN", "OLIVA", "MILITAR", "LIMA", "ESMERALDA")),
    ("YELLOW", ("AMARILLO", "YELLOW", "MOSTAZA", "OCRE")),
    ("EARTH", ("BEIGE", "ARENA", "CAMEL", "MARRON", "TOSTADO", "CHOCOLATE")),
    ("PURPLE", ("VIOLETA", "LILA", "PURPURA", "UVA")),
    ("ORANGE", ("NARANJA", "ORANGE", "CORAL")),
    ("NEON", ("FLUOR", "NEON")),
]

GARMENT_CATEGORY_TABLE: KeywordTable = [
    (TOP, ("REMERA", "BUZO", "CAMISA", "CHOMBA", "TOP", "CARDIGAN", "SWAETER",
           "SWEATER", "POLERA", "MUSCULOSA")),
    (BOTTOM, ("PANTALON", "JEAN", "SHORT", "POLLERA", "CALZA", "BERMUDA",
              "JOGGING", "FALDA")),
    (FULL_BODY, ("VESTIDO", "ENTERITO", "JARDINERO", "MONO")),
    (OUTERWEAR, ("CAMPERA", "CHALECO", "SACO", "MONTGO", "ABRIGO", "PARKA")),
    (SHOES, ("ZAPATILLA", "SANDALIA", "OJOTA", "BOTA", "CALZADO", "GUILLERMINA")),
]

VIBE_TABLE: KeywordTable = [
    (FORMAL, ("LINO", "FIESTA", "SEDA", "VOILE", "VESTIR", "GASA", "ENCAJE",
              "PUNTILLA", "SATEEN")),
    (BEACH, ("SUNNY", "PLAYA", "OJOTA", "MALLA", "BIKINI", "SHORTS DE BAÑO",
             "TRAJE DE BAÑO", "FLUOR", "NEON", "TOALLA", "LONITA")),
    (CASUAL_SPORT, ("DEPORT", "JOGGING", "RUSTICO", "ACTIVE", "ALGODON",
                    "BÁSICO", "BASICO", "SPORT")),
]


# ==================== CLASSIFIERS ====================

@dataclass(frozen=True)
class KeywordClassifier:
    """First-match-wins keyword lookup over upper-cased text."""
    table: Tuple[Tuple[str, Tuple[str, ...]], ...]
    default: str
    empty: Optional[str] = None

    def classify(self, text: Optional[str]) -> str:
        if not text:
            return self.empty if self.empty is not None else self.default
        upper = text.upper()
        for category, keywords in self.table:
            if any(kw in upper for kw in keywords):
                return category
        return self.default


def _freeze(table: Sequence[Sequence]) -> Tuple[Tuple[str, Tuple[str, ...]], ...]:
    return tuple(
        (str(category), tuple(str(kw).upper() for kw in keywords))
        for category, keywords in table
    )


@dataclass(frozen=True)
class Normalizer:
    """The three classifiers used to tag variants for scoring."""
    color_family: KeywordClassifier
    garment_category: KeywordClassifier
    vibe: KeywordClassifier

    @classmethod
    def from_tables(
        cls,
        color_table: Sequence = COLOR_FAMILY_TABLE,
        category_table: Sequence = GARMENT_CATEGORY_TABLE,
        vibe_table: Sequence = VIBE_TABLE,
    ) -> "Normalizer":
        return cls(
            color_family=KeywordClassifier(_freeze(color_table), OTHER_COLOR, empty=UNKNOWN_COLOR),
            garment_category=KeywordClassifier(_freeze(category_table), ACCESSORY, empty="OTHER"),
            vibe=KeywordClassifier(_freeze(vibe_table), CASUAL_CHIC),
        )

    def normalize_color(self, color: Optional[str]) -> str:
        return self.color_family.classify(color)

    def normalize_type(self, garment_type: Optional[str]) -> str:
        return self.garment_category.classify(garment_type)

    def detect_vibe(self, title: Optional[str], garment_type: Optional[str]) -> str:
        """Vibe of the combined title + garment type text."""
        return self.vibe.classify(f"{title or ''} {garment_type or ''}")

    def to_dict(self) -> Dict[str, List]:
        return {
            "color_family": [[c, list(kws)] for c, kws in self.color_family.table],
            "garment_category": [[c, list(kws)] for c, kws in self.garment_category.table],
            "vibe": [[c, list(kws)] for c, kws in self.vibe.table],
        }


DEFAULT_NORMALIZER = Normalizer.from_tables()


def load_normalizer(path: Optional[Union[str, Path]]) -> Normalizer:
    """
    Build a normalizer, replacing default tables with those found in `path`.

    The JSON file may define any of `color_family`, `garment_category` and
    `vibe`, each a list of `[category, [keyword, ...]]` pairs. A missing or
    malformed file keeps the defaults.
    """
    if not path:
        return DEFAULT_NORMALIZER

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        normalizer = Normalizer.from_tables(
            color_table=data.get("color_family", COLOR_FAMILY_TABLE),
            category_table=data.get("garment_category", GARMENT_CATEGORY_TABLE),
            vibe_table=data.get("vibe", VIBE_TABLE),
        )
        logger.info(f"Loaded keyword tables from {path}")
        return normalizer
    except FileNotFoundError:
        logger.warning(f"Keyword tables not found: {path}, using defaults")
    except (ValueError, TypeError, AttributeError) as e:
        logger.warning(f"Invalid keyword tables in {path}: {e}, using defaults")
    return DEFAULT_NORMALIZER


def normalize_color(color: Optional[str]) -> str:
    return DEFAULT_NORMALIZER.normalize_color(color)


def normalize_type(garment_type: Optional[str]) -> str:
    return DEFAULT_NORMALIZER.normalize_type(garment_type)


def detect_vibe(title: Optional[str], garment_type: Optional[str]) -> str:
    return DEFAULT_NORMALIZER.detect_vibe(title, garment_type)
