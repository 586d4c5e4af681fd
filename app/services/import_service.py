"""
Guest import pipeline.

A tabular file goes through four steps: decode (``ExcelService``), column
mapping (explicit, or suggested by ``detect_columns``), row normalization and
a single bulk insert scoped to one event. Rows without a usable name are
skipped and counted; the insert is all-or-nothing.

Hosts usually go through the two-step wizard: ``create_upload`` stores the
file under an explicit handle and returns a preview with the suggested
mapping, ``commit_upload`` imports it with the sheet and mapping the host
confirmed.
"""

import logging
import re
from datetime import timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.db import utcnow
from app.core.errors import (
    EmptyInputError,
    NoValidRowsError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from app.models import Event, Guest, ImportUpload, RsvpStatus
from app.schemas.imports import ColumnMapping, ImportPreview, ImportResult, MappedGuestRow
from app.services.excel_service import ExcelService, SheetTable
from app.services.repositories import (
    ImportUploadRepo,
    resolve_owned_event,
    resolve_owned_upload,
)
from app.services.rsvp_service import clean_optional, generate_rsvp_token

logger = logging.getLogger(__name__)

HEADER_SEPARATORS = re.compile(r"[\s_\-.]+")

# Candidates are already in normalized form. Order matters: the first
# candidate that matches a header wins.
FIELD_CANDIDATES: Dict[str, Tuple[str, ...]] = {
    "name": (
        "name", "nome", "guest", "convidado", "guestname", "fullname",
        "nomecompleto", "nombre", "invitado",
    ),
    "email": (
        "email", "mail", "emailaddress", "correo", "correoelectronico",
        "correioeletronico",
    ),
    "phone": (
        "phone", "telefone", "tel", "mobile", "telemovel", "telemóvel",
        "telefono", "teléfono", "celular", "phonenumber", "whatsapp",
    ),
    "dietary": (
        "dietary", "diet", "dieta", "dietaryrestrictions",
        "restricoesalimentares", "restriçõesalimentares", "allergies",
        "alergias",
    ),
    "plus_one": (
        "plusone", "plus1", "+1", "acompanhante", "companion",
    ),
}

PLUS_ONE_TRUE_VALUES = frozenset({"yes", "sim", "1", "true", "y", "s"})


def normalize_header(header: str) -> str:
    """Lower-case a header and drop space, underscore, hyphen and dot separators"""
    return HEADER_SEPARATORS.sub("", str(header).lower())


def detect_columns(headers: Iterable[str]) -> ColumnMapping:
    """Suggest a column mapping from header names.

    Best effort only: the result is meant to be shown to the host for
    confirmation. Fields with no matching header stay unmapped.
    """
    normalized = [(header, normalize_header(header)) for header in headers]
    detected = {}
    for field_name, candidates in FIELD_CANDIDATES.items():
        for candidate in candidates:
            match = next((header for header, norm in normalized if norm == candidate), None)
            if match is not None:
                detected[field_name] = match
                break
    return ColumnMapping(**detected)


def parse_plus_one(value: Optional[str]) -> bool:
    if value is None:
        return False
    return str(value).strip().lower() in PLUS_ONE_TRUE_VALUES


def validate_mapping(mapping: ColumnMapping, headers: List[str]) -> ColumnMapping:
    """Reject a host-supplied mapping that names columns the file does not have"""
    for field_name, header in mapping.mapped_fields().items():
        if header not in headers:
            raise ValidationError(
                f"Column '{header}' mapped to {field_name} is not in the file",
                details={"field": field_name, "column": header, "headers": headers},
            )
    return mapping


def normalize_row(row: Dict[str, str], mapping: ColumnMapping) -> Optional[dict]:
    """Turn one source row into guest fields, or None when it has no name"""
    def value_of(header: Optional[str]) -> Optional[str]:
        if not header:
            return None
        return clean_optional(row.get(header))

    name = value_of(mapping.name)
    if not name:
        return None

    return {
        "name": name,
        "email": value_of(mapping.email),
        "phone": value_of(mapping.phone),
        "dietary": value_of(mapping.dietary),
        "plus_one": parse_plus_one(value_of(mapping.plus_one)),
    }


def normalize_rows(rows: List[Dict[str, str]], mapping: ColumnMapping) -> Tuple[List[dict], int]:
    """Accepted guest records and the number of skipped rows"""
    accepted = []
    skipped = 0
    for row in rows:
        record = normalize_row(row, mapping)
        if record is None:
            skipped += 1
        else:
            accepted.append(record)
    return accepted, skipped


def select_sheet(tables: Dict[str, SheetTable], sheet: Optional[str]) -> Optional[SheetTable]:
    """The table to import, or None when the host still has to pick one"""
    if not tables:
        raise EmptyInputError()
    if sheet is not None:
        if sheet not in tables:
            raise ValidationError(
                f"Sheet '{sheet}' not found",
                details={"sheet": sheet, "sheets": list(tables)},
            )
        return tables[sheet]
    if len(tables) == 1:
        return next(iter(tables.values()))
    return None


def bulk_insert_guests(db: Session, event: Event, records: List[dict]) -> List[Guest]:
    """Insert all records in one transaction, each with a fresh token"""
    guests = [
        Guest(
            event_id=event.id,
            rsvp_token=generate_rsvp_token(),
            rsvp_status=RsvpStatus.PENDING.value,
            **record,
        )
        for record in records
    ]
    db.add_all(guests)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Bulk insert of {len(guests)} guests into event {event.id} failed: {e}")
        raise PersistenceError("Import failed, no guests were added") from e
    return guests


def _check_size(content: bytes) -> None:
    if len(content) > settings.MAX_UPLOAD_SIZE:
        raise ValidationError(
            "File too large",
            details={"max_bytes": settings.MAX_UPLOAD_SIZE},
        )


def _import_table(
    db: Session,
    event: Event,
    table: SheetTable,
    mapping: Optional[ColumnMapping],
) -> ImportResult:
    if not table.rows:
        raise EmptyInputError()

    if mapping is not None:
        mapping = validate_mapping(mapping, table.headers)
    else:
        mapping = detect_columns(table.headers)

    accepted, skipped = normalize_rows(table.rows, mapping)
    if not accepted:
        raise NoValidRowsError(details={"skipped": skipped, "mapping": mapping.model_dump()})

    bulk_insert_guests(db, event, accepted)
    logger.info(
        f"Imported {len(accepted)} guests into event {event.id} from sheet "
        f"'{table.name}' ({skipped} skipped)"
    )
    return ImportResult(
        sheet=table.name,
        mapping=mapping,
        imported=len(accepted),
        skipped=skipped,
    )


def import_guests(
    db: Session,
    owner_id: str,
    event_id: str,
    content: bytes,
    filename: str,
    sheet: Optional[str] = None,
    mapping: Optional[ColumnMapping] = None,
) -> ImportResult:
    """Import a guest file into an event owned by ``owner_id``.

    A file with several sheets and no ``sheet`` argument is not imported; the
    result lists the sheet names instead.
    """
    event = resolve_owned_event(db, event_id, owner_id)
    _check_size(content)

    tables = ExcelService.decode_workbook(content, filename)
    table = select_sheet(tables, sheet)
    if table is None:
        return ImportResult(needs_sheet_selection=True, sheets=list(tables))

    return _import_table(db, event, table, mapping)


def import_mapped_rows(
    db: Session,
    owner_id: str,
    event_id: str,
    rows: List[MappedGuestRow],
) -> ImportResult:
    """Import rows the client already mapped to guest fields"""
    event = resolve_owned_event(db, event_id, owner_id)
    if not rows:
        raise EmptyInputError("No guests to import")

    accepted = []
    skipped = 0
    for row in rows:
        name = clean_optional(row.name)
        if not name:
            skipped += 1
            continue
        accepted.append({
            "name": name,
            "email": clean_optional(row.email),
            "phone": clean_optional(row.phone),
            "dietary": clean_optional(row.dietary),
            "plus_one": row.plus_one,
        })

    if not accepted:
        raise NoValidRowsError("No valid guests to import", details={"skipped": skipped})

    bulk_insert_guests(db, event, accepted)
    logger.info(f"Imported {len(accepted)} mapped guests into event {event.id} ({skipped} skipped)")
    return ImportResult(imported=len(accepted), skipped=skipped)


# -------- Import wizard --------

def _preview(upload: ImportUpload, tables: Dict[str, SheetTable], sheet: Optional[str]) -> ImportPreview:
    table = select_sheet(tables, sheet)
    if table is None:
        return ImportPreview(
            upload_id=upload.id,
            filename=upload.filename,
            sheets=list(tables),
            needs_sheet_selection=True,
        )

    return ImportPreview(
        upload_id=upload.id,
        filename=upload.filename,
        sheets=list(tables),
        needs_sheet_selection=False,
        sheet=table.name,
        headers=table.headers,
        suggested_mapping=detect_columns(table.headers),
        preview_rows=table.rows[:settings.IMPORT_PREVIEW_ROWS],
        total_rows=len(table.rows),
    )


def _upload_cutoff():
    return utcnow() - timedelta(minutes=settings.IMPORT_UPLOAD_TTL_MINUTES)


def _resolve_live_upload(db: Session, upload_id: str, owner_id: str) -> ImportUpload:
    upload = resolve_owned_upload(db, upload_id, owner_id)
    if upload.created_at < _upload_cutoff():
        db.delete(upload)
        db.commit()
        raise NotFoundError("Import")
    return upload


def create_upload(
    db: Session,
    owner_id: str,
    event_id: str,
    content: bytes,
    filename: str,
) -> ImportPreview:
    """Store an uploaded file and describe it so the host can confirm the mapping"""
    event = resolve_owned_event(db, event_id, owner_id)
    _check_size(content)

    # Decode before storing so unreadable files are rejected right away
    tables = ExcelService.decode_workbook(content, filename)

    purged = ImportUploadRepo.delete_older_than(db, _upload_cutoff())
    if purged:
        logger.info(f"Purged {purged} expired import uploads")

    upload = ImportUpload(
        event_id=event.id,
        owner_id=owner_id,
        filename=filename or "upload",
        content=content,
    )
    db.add(upload)
    db.commit()
    db.refresh(upload)

    return _preview(upload, tables, sheet=None)


def preview_upload(db: Session, owner_id: str, upload_id: str, sheet: str) -> ImportPreview:
    upload = _resolve_live_upload(db, upload_id, owner_id)
    tables = ExcelService.decode_workbook(upload.content, upload.filename)
    return _preview(upload, tables, sheet)


def commit_upload(
    db: Session,
    owner_id: str,
    upload_id: str,
    sheet: Optional[str] = None,
    mapping: Optional[ColumnMapping] = None,
) -> ImportResult:
    """Import a stored upload; the handle is discarded once guests are written"""
    upload = _resolve_live_upload(db, upload_id, owner_id)
    result = import_guests(
        db,
        owner_id,
        upload.event_id,
        upload.content,
        upload.filename,
        sheet=sheet,
        mapping=mapping,
    )
    if not result.needs_sheet_selection:
        db.delete(upload)
        db.commit()
    return result
