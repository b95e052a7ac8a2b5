"""Independent matcher strategies for German utility bill text.

Each matcher looks for one kind of field and returns its candidates in
document order. Matchers never raise on malformed text; a field that
cannot be found simply yields no candidates. Chains of matchers are
composed by the parser (first match wins, or maximum for costs).
"""

import re
from abc import ABC, abstractmethod
from datetime import date
from typing import Generic, TypeVar

from nebenkosten.analysis.schema import (
    MAX_FLOOR_AREA_SQM,
    MIN_FLOOR_AREA_SQM,
    BillingPeriod,
    CostCategory,
    is_valid_postal_code,
)

T = TypeVar("T")

# German amount: optional thousands dots, optional decimal comma.
# The look-behind keeps the match from starting in the middle of a number.
AMOUNT_PATTERN = r"(?<![\d.,])(\d{1,3}(?:\.\d{3})+(?:,\d{1,2})?|\d+(?:,\d{1,2})?)"
CURRENCY_PATTERN = r"\s*(?:€|EUR\b)"
AREA_UNIT_PATTERN = r"\s*(?:m²|m2|qm|quadratmeter)"

_CITY_TOKEN = r"[A-ZÄÖÜ][a-zäöüß]+"
_MAJOR_CITIES = (
    "Berlin|München|Hamburg|Köln|Frankfurt|Stuttgart|Düsseldorf|Dortmund|Essen|"
    "Leipzig|Bremen|Dresden|Hannover|Nürnberg|Duisburg"
)


def parse_german_number(raw: str) -> float:
    """Parse '1.350,50' or '75,5' style numbers."""
    if "," in raw:
        raw = raw.replace(".", "").replace(",", ".")
    elif re.fullmatch(r"\d{1,3}(?:\.\d{3})+", raw):
        raw = raw.replace(".", "")
    return float(raw)


class Matcher(ABC, Generic[T]):
    """A single extraction heuristic."""

    name: str

    @abstractmethod
    def find(self, text: str) -> list[T]:
        """Return all plausible candidates in document order."""


class PostalCodeMatcher(Matcher[str]):
    """Five-digit postal code captured by group 1 of a pattern."""

    def __init__(self, name: str, pattern: str, flags: int = 0) -> None:
        self.name = name
        self._regex = re.compile(pattern, flags)

    def find(self, text: str) -> list[str]:
        return [
            match.group(1)
            for match in self._regex.finditer(text)
            if is_valid_postal_code(match.group(1))
        ]


class FloorAreaMatcher(Matcher[float]):
    """Number followed by an area unit, within the accepted floor area range."""

    def __init__(self, name: str, pattern: str) -> None:
        self.name = name
        self._regex = re.compile(pattern, re.IGNORECASE)

    def find(self, text: str) -> list[float]:
        found = []
        for match in self._regex.finditer(text):
            try:
                size = parse_german_number(match.group(1))
            except ValueError:
                continue
            if MIN_FLOOR_AREA_SQM <= size <= MAX_FLOOR_AREA_SQM:
                found.append(size)
        return found


class BillingPeriodMatcher(Matcher[BillingPeriod]):
    """'DD.MM.YYYY - DD.MM.YYYY' ranges (hyphen, en dash or 'bis')."""

    name = "date_range"

    _regex = re.compile(
        r"(\d{1,2})\.(\d{1,2})\.(\d{4})\s*(?:-|–|bis)\s*(\d{1,2})\.(\d{1,2})\.(\d{4})",
        re.IGNORECASE,
    )

    def find(self, text: str) -> list[BillingPeriod]:
        periods = []
        for match in self._regex.finditer(text):
            d1, m1, y1, d2, m2, y2 = (int(part) for part in match.groups())
            try:
                periods.append(BillingPeriod(start=date(y1, m1, d1), end=date(y2, m2, d2)))
            except ValueError:
                # Impossible calendar date or end not after start
                continue
        return periods


class CostMatcher(Matcher[float]):
    """Amounts in EUR following any of a category's keywords.

    For each keyword occurrence only the first amount within the look-ahead
    window on the same line counts. Amounts outside (0, max_amount) are noise.
    """

    def __init__(
        self,
        category: CostCategory,
        keywords: tuple[str, ...],
        max_amount: float,
        window: int = 60,
    ) -> None:
        self.name = category.value
        self.category = category
        self.keywords = keywords
        self.max_amount = max_amount
        self._regexes = [
            re.compile(
                rf"\b{re.escape(keyword)}[^\n]{{0,{window}}}?{AMOUNT_PATTERN}{CURRENCY_PATTERN}",
                re.IGNORECASE,
            )
            for keyword in keywords
        ]

    def find(self, text: str) -> list[float]:
        found = []
        for regex in self._regexes:
            for match in regex.finditer(text):
                amount = parse_german_number(match.group(1))
                if 0 < amount < self.max_amount:
                    found.append(amount)
        return found


class TotalAmountMatcher(Matcher[float]):
    """'Gesamtbetrag: 2.970,00 €' style statement totals."""

    name = "total"

    _regex = re.compile(
        rf"\bgesamt(?:betrag|kosten|summe)?[^\n\d]{{0,30}}{AMOUNT_PATTERN}{CURRENCY_PATTERN}",
        re.IGNORECASE,
    )

    def find(self, text: str) -> list[float]:
        return [parse_german_number(match.group(1)) for match in self._regex.finditer(text)]


def default_postal_code_matchers() -> list[PostalCodeMatcher]:
    """Postal code heuristics, highest priority first."""
    return [
        PostalCodeMatcher(
            "labelled",
            r"(?:PLZ|Postleitzahl|postal code)[\s:.]*([0-9]{5})(?![0-9])",
            re.IGNORECASE,
        ),
        PostalCodeMatcher("country_prefix", rf"\b(?:D|DE)-?([0-9]{{5}})\s+{_CITY_TOKEN}"),
        PostalCodeMatcher("city_token", rf"\b([0-9]{{5}})\s+{_CITY_TOKEN}"),
        PostalCodeMatcher("address_block", rf",\s*([0-9]{{5}})\s+{_CITY_TOKEN}"),
        PostalCodeMatcher("major_city", rf"\b([0-9]{{5}})\s+(?:{_MAJOR_CITIES})", re.IGNORECASE),
        PostalCodeMatcher("standalone", r"(?<![0-9])([0-9]{5})(?![0-9])"),
    ]


def default_floor_area_matchers() -> list[FloorAreaMatcher]:
    """Floor area heuristics, labelled ones first."""
    number = r"(?<![\d.,])(\d+(?:[.,]\d+)?)"
    return [
        FloorAreaMatcher(
            "living_area_label",
            rf"(?:wohnfläche|wohnflaeche|nutzfläche)[\s:]*(?:ca\.\s*)?"
            rf"{number}{AREA_UNIT_PATTERN}",
        ),
        FloorAreaMatcher(
            "size_label",
            rf"(?:größe|groesse|wohnung)[\s:]*(?:ca\.\s*)?{number}{AREA_UNIT_PATTERN}",
        ),
        FloorAreaMatcher("unit", rf"{number}{AREA_UNIT_PATTERN}"),
    ]


COST_KEYWORDS: dict[CostCategory, tuple[str, ...]] = {
    CostCategory.HEATING: ("heizkosten", "heizung", "warmwasser", "brennstoff", "fernwärme"),
    CostCategory.WATER: ("wasserkosten", "kaltwasser", "trinkwasser", "abwasser", "wasser"),
    CostCategory.WASTE: ("müllabfuhr", "müll", "muell", "abfall", "entsorgung"),
    CostCategory.MAINTENANCE: ("instandhaltung", "wartung", "reparatur", "hausmeister"),
    CostCategory.ELECTRICITY: ("stromkosten", "allgemeinstrom", "strom", "elektrizität"),
    CostCategory.OTHER: ("grundsteuer", "versicherung", "gartenpflege", "schornsteinfeger"),
}


def default_cost_matchers(max_amount: float) -> list[CostMatcher]:
    return [
        CostMatcher(category, keywords, max_amount)
        for category, keywords in COST_KEYWORDS.items()
    ]
