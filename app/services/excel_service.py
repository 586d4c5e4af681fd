"""
Spreadsheet decoding plus guest list template/export
"""

import csv
import io
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List

import pandas as pd

from app.core.errors import EmptyInputError, ParseError
from app.models import Event
from app.services.rsvp_service import build_rsvp_link

logger = logging.getLogger(__name__)

CSV_EXTENSIONS = ('.csv', '.txt')
XLSX_EXTENSIONS = ('.xlsx', '.xlsm')
XLS_EXTENSIONS = ('.xls',)

ZIP_MAGIC = b'PK\x03\x04'
OLE2_MAGIC = b'\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1'

# A header without any of these is read as a single column
CSV_DELIMITERS = (',', ';', '\t')

@dataclass
class SheetTable:
    """One named table of a decoded file: ordered headers and string rows"""
    name: str
    headers: List[str]
    rows: List[Dict[str, str]] = field(default_factory=list)

class ExcelService:
    """Service for handling spreadsheet operations"""

    TEMPLATE_COLUMNS = ['Name', 'Email', 'Phone', 'Dietary', 'Plus One']

    @staticmethod
    def detect_format(filename: str, content: bytes) -> str:
        """Return 'csv', 'xlsx' or 'xls'; raise ParseError for anything else"""
        lowered = (filename or '').lower().strip()
        if lowered.endswith(CSV_EXTENSIONS):
            return 'csv'
        if lowered.endswith(XLSX_EXTENSIONS):
            return 'xlsx'
        if lowered.endswith(XLS_EXTENSIONS):
            return 'xls'

        # No usable extension, sniff the container
        if content.startswith(ZIP_MAGIC):
            return 'xlsx'
        if content.startswith(OLE2_MAGIC):
            return 'xls'

        raise ParseError(f"Unsupported file type: {filename or 'unnamed upload'}")

    @staticmethod
    def decode_workbook(content: bytes, filename: str) -> Dict[str, SheetTable]:
        """Decode raw upload bytes into named tables, every cell as a string.

        Sheets keep the order they have in the workbook. A delimited text file
        yields exactly one table named after the file.
        """
        if not content:
            raise EmptyInputError()

        file_format = ExcelService.detect_format(filename, content)

        if file_format == 'csv':
            stem = os.path.splitext(os.path.basename(filename or ''))[0] or 'Sheet1'
            frames = {stem: ExcelService._read_csv(content)}
        else:
            engine = 'openpyxl' if file_format == 'xlsx' else 'xlrd'
            try:
                frames = pd.read_excel(
                    io.BytesIO(content),
                    sheet_name=None,
                    dtype=str,
                    keep_default_na=False,
                    engine=engine,
                )
            except Exception as e:
                logger.warning(f"Could not read workbook {filename!r}: {e}")
                raise ParseError() from e

        return {
            str(name): ExcelService._frame_to_table(str(name), df)
            for name, df in frames.items()
        }

    @staticmethod
    def _read_csv(content: bytes) -> pd.DataFrame:
        try:
            text = content.decode('utf-8-sig')
        except UnicodeDecodeError:
            text = content.decode('latin-1')

        if not text.strip():
            raise EmptyInputError()

        # Sniffing looks at the first line only, so it must be the header
        text = text.lstrip()
        first_line = text.splitlines()[0]
        if any(delimiter in first_line for delimiter in CSV_DELIMITERS):
            # Let the parser sniff it so quoted headers are honoured
            delimiter = None
        else:
            delimiter = ','

        try:
            return pd.read_csv(
                io.StringIO(text),
                sep=delimiter,
                engine='python',
                index_col=False,
                dtype=str,
                keep_default_na=False,
                skipinitialspace=True,
            )
        except pd.errors.EmptyDataError as e:
            raise EmptyInputError() from e
        except (pd.errors.ParserError, csv.Error, ValueError) as e:
            raise ParseError() from e

    @staticmethod
    def _frame_to_table(name: str, df: pd.DataFrame) -> SheetTable:
        headers = [str(col).strip() for col in df.columns]
        rows = []
        for values in df.itertuples(index=False, name=None):
            rows.append({
                header: '' if pd.isna(value) else str(value)
                for header, value in zip(headers, values)
            })
        return SheetTable(name=name, headers=headers, rows=rows)

    @staticmethod
    def create_template() -> bytes:
        """Create the guest import template"""
        df = pd.DataFrame(columns=ExcelService.TEMPLATE_COLUMNS)

        # Sample data for guidance
        sample_data = [
            ['Maria Silva', 'maria@example.com', '912345678', '', 'Yes'],
            ['John Smith', 'john@example.com', '', 'vegetarian', 'No'],
        ]

        for row in sample_data:
            df.loc[len(df)] = row

        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
            df.to_excel(writer, index=False, sheet_name='Guest List')

        return buffer.getvalue()

    @staticmethod
    def export_guests(event: Event) -> bytes:
        """Export an event's guest list with RSVP state and links"""
        data = []
        for guest in sorted(event.guests, key=lambda g: g.name.lower()):
            data.append({
                'Name': guest.name,
                'Email': guest.email or '',
                'Phone': guest.phone or '',
                'Status': guest.rsvp_status,
                'Plus One': 'Yes' if guest.plus_one else 'No',
                'Plus One Name': guest.plus_one_name or '',
                'Dietary': guest.dietary or '',
                'Notes': guest.notes or '',
                'Responded At': guest.responded_at.isoformat() if guest.responded_at else '',
                'RSVP Link': build_rsvp_link(event.slug, guest.rsvp_token),
            })

        columns = [
            'Name', 'Email', 'Phone', 'Status', 'Plus One', 'Plus One Name',
            'Dietary', 'Notes', 'Responded At', 'RSVP Link',
        ]
        df = pd.DataFrame(data, columns=columns)

        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
            df.to_excel(writer, index=False, sheet_name='Guest List')

        return buffer.getvalue()
