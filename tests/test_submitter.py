import pytest
import requests
from sqlmodel import Session, select

from crm_import.models import DetailStatus, ImportRecord, ImportStatus, RosterEntry
from crm_import.server.models import Company
from crm_import.submitter import (
    CONNECTIVITY_FAILURE,
    TIMEOUT_FAILURE,
    BatchSubmitter,
    HttpImportTransport,
    LocalImportTransport,
    build_company_payload,
    parse_employees,
    parse_revenue,
)


class RecordingTransport:
    def __init__(self, response=None, error=None):
        self.calls = []
        self.response = response
        self.error = error

    def send(self, payload):
        self.calls.append(payload)
        if self.error is not None:
            raise self.error
        return self.response


def _record(row, status=ImportStatus.VALID, manager=None, **fields):
    return ImportRecord(
        row=row,
        fields=fields,
        status=status,
        errors=[] if status is ImportStatus.VALID else ["x"],
        resolved_manager=manager,
    )


@pytest.mark.parametrize(
    "text, expected",
    [
        ("5000000", 5000000.0),
        ("R$ 1.234.567,89", 1234567.89),
        ("1,234.50", 1234.5),
        ("2,5", 2.5),
        ("", None),
        ("abc", None),
        ("1" * 400 + ".5", None),
        (None, None),
    ],
)
def test_parse_revenue(text, expected):
    assert parse_revenue(text) == expected


def test_parse_employees():
    assert parse_employees("50") == 50
    assert parse_employees("50.0") == 50
    assert parse_employees("muitos") is None
    assert parse_employees("1" * 400 + ".5") is None
    assert parse_employees(None) is None


def test_payload_owner_prefers_resolved_manager():
    manager = RosterEntry(id="u9", name="Carlos")
    with_manager = build_company_payload(_record(2, manager=manager, name="Acme"), default_owner_id="default")
    without_manager = build_company_payload(_record(3, name="Beta"), default_owner_id="default")
    no_default = build_company_payload(_record(4, name="Gama"))

    assert with_manager["owner_id"] == "u9"
    assert without_manager["owner_id"] == "default"
    assert no_default["owner_id"] is None
    assert no_default["type"] == "Lead"


def test_payload_shape():
    record = _record(
        2,
        name=" Acme ",
        annual_revenue="1.000,50",
        number_of_employees="12",
        contact_name="João",
        contact_role="CEO",
        type="Cliente",
    )
    record.contact_phone = "(11) 3333-4444"

    payload = build_company_payload(record)

    assert payload["name"] == "Acme"
    assert payload["annual_revenue"] == 1000.5
    assert payload["number_of_employees"] == 12
    assert payload["contact_phone"] == "(11) 3333-4444"
    assert payload["contact_cargo"] == "CEO"
    assert payload["type"] == "Cliente"
    assert payload["cnpj"] is None


def test_submit_sends_only_valid_records_in_one_call():
    transport = RecordingTransport(
        response={
            "total": 2,
            "success": 1,
            "errors": 1,
            "warnings": 0,
            "details": [
                {"row": 1, "status": "success", "message": "ok"},
                {"row": 2, "status": "error", "message": "CNPJ já existe"},
            ],
        }
    )
    records = [
        _record(2, name="Acme"),
        _record(3, status=ImportStatus.ERROR, name=""),
        _record(4, name="Beta"),
    ]

    result = BatchSubmitter(transport).submit(records, owner_id="owner")

    assert len(transport.calls) == 1
    assert [company["name"] for company in transport.calls[0]["companies"]] == ["Acme", "Beta"]
    assert transport.calls[0]["owner_id"] == "owner"
    assert (result.total, result.success_count, result.error_count) == (2, 1, 1)
    assert result.success_count + result.error_count == len(result.details) == 2
    assert [detail.source_row for detail in result.details] == [2, 4]


def test_submit_without_valid_records_makes_no_call():
    transport = RecordingTransport()

    result = BatchSubmitter(transport).submit([_record(2, status=ImportStatus.ERROR)])

    assert transport.calls == []
    assert result.total == 0


@pytest.mark.parametrize(
    "error, message",
    [
        (requests.ConnectionError("down"), CONNECTIVITY_FAILURE),
        (requests.Timeout("slow"), TIMEOUT_FAILURE),
        (requests.ConnectTimeout("slow connect"), TIMEOUT_FAILURE),
    ],
)
def test_transport_failures_become_a_terminal_result(error, message):
    result = BatchSubmitter(RecordingTransport(error=error)).submit([_record(2, name="Acme")])

    assert (result.success_count, result.error_count) == (0, 1)
    assert len(result.details) == 1
    assert result.details[0].status is DetailStatus.ERROR
    assert result.details[0].message == message


def test_unknown_failure_names_the_error():
    result = BatchSubmitter(RecordingTransport(error=ValueError("bad json"))).submit([_record(2, name="Acme")])

    assert result.error_count == 1
    assert "bad json" in result.details[0].message


def test_payload_mapping_failure_becomes_a_terminal_result(monkeypatch):
    def explode(record, default_owner_id=None):
        raise OverflowError("cannot convert float infinity to integer")

    monkeypatch.setattr("crm_import.submitter.build_company_payload", explode)
    transport = RecordingTransport()

    result = BatchSubmitter(transport).submit([_record(2, name="Acme"), _record(3, name="Beta")])

    assert transport.calls == []
    assert (result.total, result.success_count, result.error_count) == (2, 0, 1)
    assert "infinity" in result.details[0].message


class _FakeResponse:
    def __init__(self, status_code, body):
        self.status_code = status_code
        self._body = body

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")

    def json(self):
        return self._body


class _FakeHttpSession:
    def __init__(self, response):
        self.response = response
        self.requests = []

    def post(self, url, **kwargs):
        self.requests.append((url, kwargs))
        return self.response


def test_http_transport_posts_json_with_bearer_token():
    http = _FakeHttpSession(_FakeResponse(200, {"total": 0, "success": 0, "errors": 0, "warnings": 0, "details": []}))
    transport = HttpImportTransport("https://crm.test/functions/v1/import-companies", token="abc", timeout=5, session=http)

    body = transport.send({"companies": [], "owner_id": None})

    url, kwargs = http.requests[0]
    assert url.endswith("/import-companies")
    assert kwargs["headers"]["Authorization"] == "Bearer abc"
    assert kwargs["timeout"] == 5
    assert kwargs["json"] == {"companies": [], "owner_id": None}
    assert body["total"] == 0


def test_http_server_error_is_reported():
    http = _FakeHttpSession(_FakeResponse(500, {}))
    transport = HttpImportTransport("https://crm.test/import", session=http)

    result = BatchSubmitter(transport).submit([_record(2, name="Acme")])

    assert result.error_count == 1
    assert "500" in result.details[0].message


def test_local_transport_runs_the_bulk_insert(engine, users):
    transport = LocalImportTransport(lambda: Session(engine), "sales-1")

    result = BatchSubmitter(transport).submit([_record(2, name="Acme"), _record(3, name="Beta")])

    assert (result.total, result.success_count) == (2, 2)
    with Session(engine) as session:
        assert {company.name for company in session.exec(select(Company)).all()} == {"Acme", "Beta"}
