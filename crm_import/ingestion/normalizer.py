"""Column normalisation for imported company spreadsheets."""
from __future__ import annotations

import re
import unicodedata
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from ..models import NormalizedRow

# Header rows are line 1 of the sheet, so data row ``i`` (0-based) is line ``i + 2``.
ROW_NUMBER_OFFSET = 2

CANONICAL_FIELDS: Sequence[str] = (
    "name",
    "cnpj",
    "city",
    "state",
    "email",
    "phone",
    "sector",
    "website",
    "type",
    "annual_revenue",
    "number_of_employees",
    "size",
    "contact_name",
    "contact_area_code",
    "contact_number",
    "contact_role",
    "manager_name",
)

_FIELD_SYNONYMS: Mapping[str, Sequence[str]] = {
    "name": (
        "nome completo da empresa",
        "nome da empresa",
        "nome",
        "empresa",
        "razao social",
        "company",
        "company name",
    ),
    "cnpj": ("cnpj", "cnpj da empresa"),
    "city": ("cidade", "municipio", "city"),
    "state": ("estado", "uf", "state"),
    "email": ("email", "e-mail", "email da empresa"),
    "phone": ("telefone", "telefone da empresa", "fone", "phone"),
    "sector": ("setor", "segmento", "sector", "industry"),
    "website": ("website", "site", "url"),
    "type": ("tipo", "type"),
    "annual_revenue": ("receita anual", "faturamento", "faturamento anual", "revenue", "annual revenue"),
    "number_of_employees": (
        "funcionarios",
        "numero de funcionarios",
        "qtd funcionarios",
        "employees",
        "number of employees",
    ),
    "size": ("porte", "size"),
    "contact_name": ("nome completo do profissional", "nome do profissional", "contato", "contact name"),
    "contact_area_code": ("dd", "ddd", "area code"),
    "contact_number": ("celular", "telefone do profissional", "whatsapp", "mobile"),
    "contact_role": ("cargo", "funcao", "contact role", "role"),
    "manager_name": ("gerente", "gerente responsavel", "vendedor", "responsavel", "manager"),
}

_WHITESPACE = re.compile(r"[\s_]+")


def normalize_header(header: str) -> str:
    """Lowercase, trim, strip accents, and collapse whitespace/underscores."""

    decomposed = unicodedata.normalize("NFKD", str(header))
    without_accents = "".join(char for char in decomposed if not unicodedata.combining(char))
    return _WHITESPACE.sub(" ", without_accents).strip().lower()


def _build_column_mapping() -> Dict[str, str]:
    mapping: Dict[str, str] = {}
    for field, synonyms in _FIELD_SYNONYMS.items():
        # canonical names map to themselves so that normalising twice is a no-op
        mapping[normalize_header(field)] = field
        for synonym in synonyms:
            mapping[normalize_header(synonym)] = field
    return mapping


COLUMN_MAPPING: Mapping[str, str] = _build_column_mapping()


def canonical_field(header: str) -> Optional[str]:
    """Return the canonical field name for ``header`` or ``None`` when unknown."""

    return COLUMN_MAPPING.get(normalize_header(header))


def normalize_row(row: Mapping[str, str]) -> Dict[str, str]:
    """Rewrite the keys of a single row, dropping unrecognised headers.

    When two headers map to the same field the first non-empty value wins.
    """

    fields: Dict[str, str] = {}
    for header, value in row.items():
        field = canonical_field(header)
        if field is None:
            continue
        text = "" if value is None else str(value).strip()
        if field not in fields or (not fields[field] and text):
            fields[field] = text
    return fields


def normalize_rows(rows: Iterable[Mapping[str, str]]) -> List[NormalizedRow]:
    """Normalise every row and drop the ones with no recognised, non-empty field."""

    normalized: List[NormalizedRow] = []
    for index, row in enumerate(rows):
        fields = normalize_row(row)
        if not any(fields.values()):
            continue
        normalized.append(NormalizedRow(row=index + ROW_NUMBER_OFFSET, fields=fields))
    return normalized


__all__ = [
    "CANONICAL_FIELDS",
    "COLUMN_MAPPING",
    "ROW_NUMBER_OFFSET",
    "canonical_field",
    "normalize_header",
    "normalize_row",
    "normalize_rows",
]
