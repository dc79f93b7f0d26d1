"""Export utilities for import previews, results, and the upload template."""
from __future__ import annotations

from pathlib import Path
from typing import List, MutableMapping, Optional, Sequence, Union

import pandas as pd

from ..models import ImportRecord, ImportResult

PathLike = Union[str, Path]

TEMPLATE_COLUMNS: Sequence[str] = (
    "Nome Completo da Empresa",
    "CNPJ",
    "Cidade",
    "Estado",
    "Setor",
    "Porte",
    "Funcionarios",
    "Receita Anual",
    "Telefone",
    "Email",
    "Website",
    "Tipo",
    "Gerente",
    "Nome Completo do Profissional",
    "DD",
    "Celular",
    "Cargo",
)

TEMPLATE_EXAMPLE: Sequence[object] = (
    "Empresa Exemplo Ltda",
    "11.222.333/0001-81",
    "São Paulo",
    "SP",
    "Tecnologia",
    "Média",
    50,
    5000000,
    "(11) 3333-4444",
    "contato@exemplo.com",
    "https://exemplo.com",
    "Lead",
    "Maria",
    "João da Silva",
    "11",
    "99999-9999",
    "Diretor Comercial",
)


def write_template(path: PathLike) -> Path:
    """Write the spreadsheet users fill in before importing."""

    dataframe = pd.DataFrame([list(TEMPLATE_EXAMPLE)], columns=list(TEMPLATE_COLUMNS))
    output_path = Path(path)
    _write_dataframe(dataframe, output_path, sheet_name="Template", exporter_kwargs=None)
    return output_path


def records_to_dataframe(records: Sequence[ImportRecord]) -> pd.DataFrame:
    """Convert validated preview records into a :class:`pandas.DataFrame`."""

    rows: List[MutableMapping[str, object]] = []
    for record in records:
        rows.append(
            {
                "row": record.row,
                "status": record.status.value,
                "name": record.value("name"),
                "cnpj": record.value("cnpj"),
                "city": record.value("city"),
                "type": record.value("type") or "Lead",
                "manager": record.resolved_manager.name if record.resolved_manager else record.value("manager_name"),
                "contact_phone": record.contact_phone,
                "errors": "; ".join(record.errors),
            }
        )
    return pd.DataFrame(rows, columns=["row", "status", "name", "cnpj", "city", "type", "manager", "contact_phone", "errors"])


def result_to_dataframe(result: ImportResult) -> pd.DataFrame:
    rows = [
        {
            "row": detail.row,
            "source_row": detail.source_row,
            "status": detail.status.value,
            "message": detail.message,
        }
        for detail in result.details
    ]
    return pd.DataFrame(rows, columns=["row", "source_row", "status", "message"])


def export_records(
    records: Sequence[ImportRecord],
    path: PathLike,
    *,
    sheet_name: str = "Preview",
    exporter_kwargs: Optional[MutableMapping[str, object]] = None,
) -> Path:
    output_path = Path(path)
    _write_dataframe(records_to_dataframe(records), output_path, sheet_name=sheet_name, exporter_kwargs=exporter_kwargs)
    return output_path


def export_import_result(
    result: ImportResult,
    path: PathLike,
    *,
    sheet_name: str = "Results",
    exporter_kwargs: Optional[MutableMapping[str, object]] = None,
) -> Path:
    """Write the per-row outcome of an import to a CSV or Excel file."""

    output_path = Path(path)
    _write_dataframe(result_to_dataframe(result), output_path, sheet_name=sheet_name, exporter_kwargs=exporter_kwargs)
    return output_path


def _write_dataframe(
    dataframe: pd.DataFrame,
    path: Path,
    *,
    sheet_name: str,
    exporter_kwargs: Optional[MutableMapping[str, object]],
) -> None:
    exporter_kwargs = dict(exporter_kwargs or {})
    suffix = path.suffix.lower()
    path.parent.mkdir(parents=True, exist_ok=True)

    if suffix == ".csv":
        exporter_kwargs.setdefault("encoding", "utf-8-sig")
        dataframe.to_csv(path, index=False, **exporter_kwargs)
        return

    if suffix == ".xlsx":
        engine = exporter_kwargs.pop("engine", None) or "openpyxl"
        dataframe.to_excel(path, index=False, sheet_name=sheet_name, engine=engine, **exporter_kwargs)
        return

    raise ValueError(f"Unsupported export file extension: {suffix}")


__all__ = [
    "TEMPLATE_COLUMNS",
    "export_import_result",
    "export_records",
    "records_to_dataframe",
    "result_to_dataframe",
    "write_template",
]
