"""Smoke tests for the CLI entry point."""
from __future__ import annotations

import json

import pandas as pd
import pytest
from sqlmodel import Session, select

from crm_import import __main__
from crm_import.cli import main
from crm_import.ingestion.exporters import TEMPLATE_COLUMNS
from crm_import.server.database import create_db_engine, init_db
from crm_import.server.models import Company, User

CSV_BODY = (
    "Nome Completo da Empresa;CNPJ;Gerente;Nome Completo do Profissional;DD;Celular\n"
    "Acme Ltda;11.222.333/0001-81;Carlos;João Silva;11;98765-4321\n"
    "Beta SA;;carlos souza;;;\n"
    ";;Carlos;;;\n"
)


def _write_config(tmp_path, **config):
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps(config), encoding="utf-8")
    return config_path


def test_template_command_writes_every_column(tmp_path) -> None:
    output_path = tmp_path / "modelo.xlsx"

    exit_code = main(["template", str(output_path)])

    assert exit_code == 0
    assert list(pd.read_excel(output_path).columns) == list(TEMPLATE_COLUMNS)


def test_preview_prints_page_and_exports(tmp_path, capsys: pytest.CaptureFixture[str]) -> None:
    input_path = tmp_path / "empresas.csv"
    input_path.write_text(CSV_BODY, encoding="utf-8")
    config_path = _write_config(tmp_path, roster=[{"id": "sales-1", "name": "Carlos Souza"}])
    output_path = tmp_path / "preview.csv"

    exit_code = main(["preview", str(input_path), "--config", str(config_path), "--output", str(output_path)])

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "Valid: 2  Errors: 1" in out
    assert "Company name is required" in out
    assert output_path.exists()


def test_import_into_database(tmp_path, capsys: pytest.CaptureFixture[str]) -> None:
    database_url = f"sqlite:///{tmp_path / 'crm.db'}"
    engine = create_db_engine(database_url)
    init_db(engine)
    with Session(engine) as session:
        session.add(User(id="sales-1", name="Carlos Souza", email="carlos@crm.test"))
        session.commit()

    input_path = tmp_path / "empresas.csv"
    input_path.write_text(CSV_BODY, encoding="utf-8")
    config_path = _write_config(tmp_path, database_url=database_url, acting_user_id="sales-1")
    output_path = tmp_path / "resultado.csv"

    exit_code = main(["import", str(input_path), "--config", str(config_path), "--output", str(output_path)])

    assert exit_code == 0
    assert "Total: 2  Success: 2  Errors: 0" in capsys.readouterr().out
    with Session(engine) as session:
        assert {company.name for company in session.exec(select(Company)).all()} == {"Acme Ltda", "Beta SA"}
    assert "NOVO CADASTRO" in output_path.read_text(encoding="utf-8-sig")
    engine.dispose()


def test_import_requires_acting_user_for_database(tmp_path) -> None:
    input_path = tmp_path / "empresas.csv"
    input_path.write_text(CSV_BODY, encoding="utf-8")
    config_path = _write_config(tmp_path, database_url=f"sqlite:///{tmp_path / 'crm.db'}")

    assert main(["import", str(input_path), "--config", str(config_path)]) == 2


def test_missing_config_returns_configuration_error(tmp_path) -> None:
    assert main(["preview", str(tmp_path / "x.csv"), "--config", str(tmp_path / "absent.json")]) == 2


def test_module_entry_point_without_arguments_shows_help(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = __main__.main([])

    captured = capsys.readouterr()
    assert "python -m crm_import" in captured.out
    assert exit_code == 2


def test_in_memory_database_is_shared_by_roster_and_import(tmp_path, monkeypatch, capsys: pytest.CaptureFixture[str]) -> None:
    engines = []

    def seeded_engine(url):
        engine = create_db_engine(url)
        init_db(engine)
        with Session(engine) as session:
            session.add(User(id="sales-1", name="Carlos Souza", email="carlos@crm.test"))
            session.commit()
        engines.append(engine)
        return engine

    monkeypatch.setattr("crm_import.cli.create_db_engine", seeded_engine)
    input_path = tmp_path / "empresas.csv"
    input_path.write_text(CSV_BODY, encoding="utf-8")
    config_path = _write_config(tmp_path, database_url="sqlite://", acting_user_id="sales-1")

    exit_code = main(["import", str(input_path), "--config", str(config_path)])

    assert len(engines) == 1
    assert exit_code == 0
    assert "Total: 2  Success: 2  Errors: 0" in capsys.readouterr().out
    with Session(engines[0]) as session:
        assert len(session.exec(select(Company)).all()) == 2
