import pytest

from crm_import.cnpj import format_cnpj, is_valid_cnpj, strip_cnpj


@pytest.mark.parametrize("value", ["11.222.333/0001-81", "11222333000181", "04.252.011/0001-10"])
def test_valid_cnpjs(value):
    assert is_valid_cnpj(value)


@pytest.mark.parametrize(
    "value",
    ["11.222.333/0001-82", "11222333000191", "1122233300018", "", "11.111.111/1111-11", "00000000000000"],
)
def test_invalid_cnpjs(value):
    assert not is_valid_cnpj(value)


def test_strip_and_format():
    assert strip_cnpj("11.222.333/0001-81") == "11222333000181"
    assert format_cnpj("11222333000181") == "11.222.333/0001-81"
    assert format_cnpj("123") is None
