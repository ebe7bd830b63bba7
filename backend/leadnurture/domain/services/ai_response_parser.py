"""
PARSER DE RESPOSTAS DA IA
==========================

A IA é instruída a anexar linhas marcadoras ao final da resposta quando
agenda uma visita ou entende o que o lead procura:

    NEW APPOINTMENT SET: 06/15/2025 at 2:30 PM
    NEW SEARCH CRITERIA: MIN BEDROOMS: 3, MAX PRICE: $450,000, LOCATIONS: Austin, Dallas

Este módulo extrai esses dados e remove as linhas do texto que vai para o lead.
Funções puras, sem I/O.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional


APPOINTMENT_PATTERN = re.compile(
    r"NEW APPOINTMENT SET:\s*(\d{1,2}/\d{1,2}/\d{4})\s*at\s*(\d{1,2}:\d{2}\s*(?:AM|PM))",
    re.IGNORECASE,
)

# Linha inteira do marcador (para remoção)
APPOINTMENT_LINE_PATTERN = re.compile(r"[ \t]*NEW APPOINTMENT SET:[^\n]*\n?", re.IGNORECASE)
SEARCH_LINE_PATTERN = re.compile(
    r"[ \t]*NEW (?:SEARCH CRITERIA|PROPERTY SEARCH):[^\n]*\n?", re.IGNORECASE
)
SEARCH_PATTERN = re.compile(r"NEW (?:SEARCH CRITERIA|PROPERTY SEARCH):([^\n]*)", re.IGNORECASE)

# Chave no texto -> campo da busca. Ordem importa: "NOTES" antes de "NOTE".
SEARCH_KEYS: list[tuple[str, str]] = [
    ("MIN BEDROOMS", "min_bedrooms"),
    ("MAX BEDROOMS", "max_bedrooms"),
    ("MIN BATHROOMS", "min_bathrooms"),
    ("MAX BATHROOMS", "max_bathrooms"),
    ("MIN PRICE", "min_price"),
    ("MAX PRICE", "max_price"),
    ("MIN SQUARE FEET", "min_square_feet"),
    ("MAX SQUARE FEET", "max_square_feet"),
    ("LOCATIONS", "locations"),
    ("PROPERTY TYPES", "property_types"),
    ("NOTES", "notes"),
    ("NOTE", "notes"),
]

KEY_PATTERN = re.compile(
    r"\b(" + "|".join(re.escape(key) for key, _ in SEARCH_KEYS) + r")\s*:",
    re.IGNORECASE,
)

INT_FIELDS = {"min_bedrooms", "max_bedrooms", "min_square_feet", "max_square_feet"}
FLOAT_FIELDS = {"min_bathrooms", "max_bathrooms"}
PRICE_FIELDS = {"min_price", "max_price"}
LIST_FIELDS = {"locations", "property_types"}

EMPTY_VALUES = {"", "n/a", "na", "none", "any", "null", "unknown", "not specified", "-"}


@dataclass
class ParsedAppointment:
    date: str        # "06/15/2025"
    time: str        # "2:30 PM"
    start: datetime  # naive, horário local do corretor

    def to_dict(self) -> dict:
        return {"date": self.date, "time": self.time, "start": self.start.isoformat()}


@dataclass
class ParsedAIResponse:
    text: str
    appointment: Optional[ParsedAppointment] = None
    search_criteria: Optional[dict[str, Any]] = None
    raw_search_text: Optional[str] = None
    tokens_used: int = 0
    raw_text: str = field(default="", repr=False)

    @property
    def has_appointment(self) -> bool:
        return self.appointment is not None

    @property
    def has_search_criteria(self) -> bool:
        return self.search_criteria is not None


def _empty_criteria() -> dict[str, Any]:
    criteria: dict[str, Any] = {}
    for _, field_name in SEARCH_KEYS:
        criteria[field_name] = [] if field_name in LIST_FIELDS else None
    return criteria


def _is_empty(value: str) -> bool:
    cleaned = value.strip().strip(".").strip()
    return cleaned.lower() in EMPTY_VALUES or (cleaned.startswith("<") and cleaned.endswith(">"))


def parse_price(value: str) -> Optional[int]:
    """"$450,000" -> 450000, "450k" -> 450000, "1.2M" -> 1200000."""
    if _is_empty(value):
        return None
    cleaned = value.strip().lower().replace("$", "").replace(",", "").replace(" ", "")
    multiplier = 1
    if cleaned.endswith("k"):
        multiplier, cleaned = 1_000, cleaned[:-1]
    elif cleaned.endswith("m"):
        multiplier, cleaned = 1_000_000, cleaned[:-1]
    match = re.match(r"\d+(?:\.\d+)?", cleaned)
    if not match:
        return None
    return int(round(float(match.group(0)) * multiplier))


def _parse_number(value: str, as_float: bool) -> Optional[float]:
    if _is_empty(value):
        return None
    match = re.search(r"\d+(?:\.\d+)?", value.replace(",", ""))
    if not match:
        return None
    number = float(match.group(0))
    return number if as_float else int(number)


def _parse_list(value: str) -> list[str]:
    if _is_empty(value):
        return []
    items = [item.strip().strip(".").strip() for item in value.split(",")]
    return [item for item in items if item and not _is_empty(item)]


def _convert(field_name: str, value: str) -> Any:
    value = value.strip().rstrip(",;|").strip()
    if field_name in LIST_FIELDS:
        return _parse_list(value)
    if field_name in PRICE_FIELDS:
        return parse_price(value)
    if field_name in FLOAT_FIELDS:
        return _parse_number(value, as_float=True)
    if field_name in INT_FIELDS:
        return _parse_number(value, as_float=False)
    # notes
    return None if _is_empty(value) else value.strip()


def parse_search_fields(segment: str) -> dict[str, Any]:
    """
    Extrai os campos conhecidos de um texto "KEY: value, KEY: value".

    O valor de cada chave vai até a próxima chave conhecida, então listas
    podem conter vírgulas ("LOCATIONS: Austin, Dallas, PROPERTY TYPES: ...").
    """
    criteria = _empty_criteria()
    lookup = {key: field_name for key, field_name in SEARCH_KEYS}
    matches = list(KEY_PATTERN.finditer(segment))

    for index, match in enumerate(matches):
        end = matches[index + 1].start() if index + 1 < len(matches) else len(segment)
        key = re.sub(r"\s+", " ", match.group(1).upper())
        field_name = lookup[key]
        criteria[field_name] = _convert(field_name, segment[match.end():end])

    return criteria


def parse_search_criteria(text: Optional[str]) -> Optional[dict[str, Any]]:
    """Retorna os critérios do marcador NEW SEARCH CRITERIA, ou None se não houver marcador."""
    if not text:
        return None
    match = SEARCH_PATTERN.search(text)
    if not match:
        return None
    return parse_search_fields(match.group(1))


def extract_search_line(text: Optional[str]) -> Optional[str]:
    if not text:
        return None
    match = SEARCH_PATTERN.search(text)
    return match.group(0).strip() if match else None


def parse_appointment(text: Optional[str]) -> Optional[ParsedAppointment]:
    """Extrai data/hora do marcador NEW APPOINTMENT SET (datas inválidas -> None)."""
    if not text:
        return None
    match = APPOINTMENT_PATTERN.search(text)
    if not match:
        return None

    date_str = match.group(1)
    time_str = re.sub(r"\s*(AM|PM)$", r" \1", match.group(2).strip().upper())

    try:
        start = datetime.strptime(f"{date_str} {time_str}", "%m/%d/%Y %I:%M %p")
    except ValueError:
        return None

    return ParsedAppointment(date=date_str, time=time_str, start=start)


def sanitize_response(text: Optional[str]) -> str:
    """Remove as linhas marcadoras do texto que será enviado ao lead."""
    if not text:
        return ""
    cleaned = APPOINTMENT_LINE_PATTERN.sub("", text)
    cleaned = SEARCH_LINE_PATTERN.sub("", cleaned)
    cleaned = re.sub(r"\n{3,}", "\n\n", cleaned)
    return cleaned.strip()


def handle_response(text: Optional[str]) -> ParsedAIResponse:
    """Processa a resposta bruta da IA: texto limpo + dados extraídos."""
    raw = text or ""
    return ParsedAIResponse(
        text=sanitize_response(raw),
        appointment=parse_appointment(raw),
        search_criteria=parse_search_criteria(raw),
        raw_search_text=extract_search_line(raw),
        raw_text=raw,
    )
