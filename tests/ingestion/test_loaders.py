import pandas as pd
import pytest

from crm_import.ingestion.loaders import (
    MAX_FILE_SIZE,
    CorruptFileError,
    EmptyFileError,
    FileImportError,
    FileTooLargeError,
    NoRowsError,
    UnsupportedFileTypeError,
    load_rows,
    load_rows_from_bytes,
)


@pytest.fixture()
def sample_dataframe():
    return pd.DataFrame(
        [
            {
                "Nome Completo da Empresa": "Acme Ltda",
                "CNPJ": "11.222.333/0001-81",
                "DD": 11,
                "Celular": 987654321,
                "Gerente": "Carlos Souza",
            },
            {
                "Nome Completo da Empresa": "Beta SA",
                "CNPJ": None,
                "DD": 21,
                "Celular": 33334444,
                "Gerente": "",
            },
        ]
    )


def test_load_rows_from_csv_keeps_headers_and_text(sample_dataframe, tmp_path):
    csv_path = tmp_path / "empresas.csv"
    sample_dataframe.to_csv(csv_path, index=False)

    rows = load_rows(csv_path)

    assert len(rows) == 2
    assert rows[0]["Nome Completo da Empresa"] == "Acme Ltda"
    assert rows[0]["DD"] == "11"
    assert rows[1]["CNPJ"] == ""
    assert rows[1]["Gerente"] == ""


def test_load_rows_from_semicolon_csv(tmp_path):
    csv_path = tmp_path / "empresas.csv"
    csv_path.write_text("Empresa;Cidade\nAcme;São Paulo\n", encoding="utf-8")

    rows = load_rows(csv_path)

    assert rows == [{"Empresa": "Acme", "Cidade": "São Paulo"}]


def test_load_rows_from_excel_drops_float_suffix(sample_dataframe, tmp_path):
    excel_path = tmp_path / "empresas.xlsx"
    sample_dataframe.to_excel(excel_path, index=False)

    rows = load_rows(excel_path)

    assert len(rows) == 2
    assert rows[0]["Celular"] == "987654321"
    assert rows[1]["DD"] == "21"
    assert rows[1]["CNPJ"] == ""


def test_load_rows_from_bytes_matches_file_loader(sample_dataframe, tmp_path):
    csv_path = tmp_path / "empresas.csv"
    sample_dataframe.to_csv(csv_path, index=False)

    assert load_rows_from_bytes("upload.csv", csv_path.read_bytes()) == load_rows(csv_path)


def test_empty_file_is_rejected_before_parsing(tmp_path):
    empty = tmp_path / "vazio.csv"
    empty.write_bytes(b"")

    with pytest.raises(EmptyFileError):
        load_rows(empty)


def test_oversized_upload_is_rejected():
    with pytest.raises(FileTooLargeError):
        load_rows_from_bytes("big.csv", b"a" * (MAX_FILE_SIZE + 1))


def test_unsupported_file_extension(tmp_path):
    bad_path = tmp_path / "empresas.json"
    bad_path.write_text("{}", encoding="utf-8")

    with pytest.raises(UnsupportedFileTypeError):
        load_rows(bad_path)


def test_header_only_csv_has_no_rows(tmp_path):
    csv_path = tmp_path / "empresas.csv"
    csv_path.write_text("Empresa,Cidade\n", encoding="utf-8")

    with pytest.raises(NoRowsError):
        load_rows(csv_path)


def test_corrupt_workbook(tmp_path):
    bad_path = tmp_path / "empresas.xlsx"
    bad_path.write_bytes(b"this is not a zip archive")

    with pytest.raises(CorruptFileError):
        load_rows(bad_path)


def test_file_errors_share_a_base_class():
    assert issubclass(EmptyFileError, FileImportError)
    assert issubclass(FileImportError, ValueError)
