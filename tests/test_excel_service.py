"""
Tests for spreadsheet decoding, template and export
"""

import io

import pandas as pd
import pytest

from app.core.errors import EmptyInputError, ParseError
from app.services.excel_service import ExcelService


def test_decode_csv_single_table():
    """CSV yields one table named after the file, cells as strings"""
    content = "Name,Phone,Plus One\nMaria Silva,912345678,yes\nJohn,,\n".encode("utf-8")

    tables = ExcelService.decode_workbook(content, "guests.csv")

    assert list(tables) == ["guests"]
    table = tables["guests"]
    assert table.headers == ["Name", "Phone", "Plus One"]
    assert table.rows[0] == {"Name": "Maria Silva", "Phone": "912345678", "Plus One": "yes"}
    assert table.rows[1] == {"Name": "John", "Phone": "", "Plus One": ""}


def test_decode_csv_semicolon_delimiter():
    """Semicolon separated exports are read as columns, not one big header"""
    content = "Nome;Telefone\nMaria Silva;912345678\n".encode("utf-8")

    table = ExcelService.decode_workbook(content, "lista.csv")["lista"]

    assert table.headers == ["Nome", "Telefone"]
    assert table.rows == [{"Nome": "Maria Silva", "Telefone": "912345678"}]


def test_decode_csv_trailing_commas_keep_columns_aligned():
    """A trailing delimiter on every row must not shift values under the wrong header"""
    content = b"Nome,Telefone\nMaria Silva,912345678,\nRui Costa,913000000,\n"

    table = ExcelService.decode_workbook(content, "g.csv")["g"]

    assert table.headers == ["Nome", "Telefone"]
    assert table.rows == [
        {"Nome": "Maria Silva", "Telefone": "912345678"},
        {"Nome": "Rui Costa", "Telefone": "913000000"},
    ]


def test_decode_csv_quoted_header_with_comma():
    """Commas inside a quoted header do not decide the delimiter"""
    content = '"Last, First";Phone\n"Silva, Maria";912345678\n'.encode("utf-8")

    table = ExcelService.decode_workbook(content, "g.csv")["g"]

    assert table.headers == ["Last, First", "Phone"]
    assert table.rows == [{"Last, First": "Silva, Maria", "Phone": "912345678"}]


def test_decode_csv_single_column():
    content = "\nGuest Name\nMaria Silva\nRui Costa\n".encode("utf-8")

    table = ExcelService.decode_workbook(content, "g.csv")["g"]

    assert table.headers == ["Guest Name"]
    assert [row["Guest Name"] for row in table.rows] == ["Maria Silva", "Rui Costa"]


def test_decode_csv_with_bom_and_latin1():
    """Byte order marks are dropped and non-UTF-8 files still decode"""
    utf8 = "\ufeffNome\nJoão\n".encode("utf-8")
    latin1 = "Nome\nJoão\n".encode("latin-1")

    assert ExcelService.decode_workbook(utf8, "a.csv")["a"].headers == ["Nome"]
    assert ExcelService.decode_workbook(latin1, "b.csv")["b"].rows == [{"Nome": "João"}]


def test_decode_xlsx_keeps_sheet_order(excel_bytes):
    """All sheets are returned in workbook order"""
    content = excel_bytes({
        "Family": {"Name": ["Ana"]},
        "Friends": {"Name": ["Rui", "Inês"]},
    })

    tables = ExcelService.decode_workbook(content, "guests.xlsx")

    assert list(tables) == ["Family", "Friends"]
    assert [row["Name"] for row in tables["Friends"].rows] == ["Rui", "Inês"]


def test_decode_xlsx_blank_cells_are_empty_strings(excel_bytes):
    content = excel_bytes({"Guests": {"Name": ["Ana", "Rui"], "Email": ["ana@example.com", None]}})

    table = ExcelService.decode_workbook(content, "guests.xlsx")["Guests"]

    assert table.rows[1]["Email"] == ""


def test_decode_detects_workbook_without_extension(excel_bytes):
    """Zip container magic identifies an xlsx upload with no usable filename"""
    content = excel_bytes({"Sheet1": {"Name": ["Ana"]}})

    tables = ExcelService.decode_workbook(content, "upload")

    assert list(tables) == ["Sheet1"]


def test_decode_empty_file():
    with pytest.raises(EmptyInputError):
        ExcelService.decode_workbook(b"", "guests.xlsx")


def test_decode_blank_csv():
    with pytest.raises(EmptyInputError):
        ExcelService.decode_workbook(b"   \n\n", "guests.csv")


def test_decode_corrupt_workbook():
    with pytest.raises(ParseError):
        ExcelService.decode_workbook(b"PK\x03\x04 definitely not a workbook", "guests.xlsx")


def test_decode_unrecognized_format():
    with pytest.raises(ParseError):
        ExcelService.decode_workbook(b"%PDF-1.7 ...", "guests.pdf")


def test_create_template():
    """Template has the guest columns the auto-detection understands"""
    template_bytes = ExcelService.create_template()

    df = pd.read_excel(io.BytesIO(template_bytes))
    for col in ["Name", "Email", "Phone", "Dietary", "Plus One"]:
        assert col in df.columns
    assert len(df) == 2


def test_export_guests(db_session, sample_event, make_guest):
    """Exported list carries status, plus-one flag and the RSVP link"""
    make_guest(sample_event, name="Rui", token="tok-rui-00001", plus_one=True)
    make_guest(
        sample_event, name="Ana", token="tok-ana-00001",
        rsvp_status="confirmed", dietary="vegan",
    )
    db_session.refresh(sample_event)

    excel_content = ExcelService.export_guests(sample_event)

    df = pd.read_excel(io.BytesIO(excel_content), dtype=str, keep_default_na=False)
    assert list(df["Name"]) == ["Ana", "Rui"]
    assert df.iloc[0]["Status"] == "confirmed"
    assert df.iloc[0]["Dietary"] == "vegan"
    assert df.iloc[1]["Plus One"] == "Yes"
    assert df.iloc[1]["RSVP Link"].endswith("/event/ana-joao-0001/rsvp/tok-rui-00001")
