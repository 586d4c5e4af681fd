"""
Guest import schemas
"""

from typing import Dict, List, Optional
from pydantic import BaseModel, Field

class ColumnMapping(BaseModel):
    """Source header chosen for each guest field; None leaves the field unmapped"""
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    dietary: Optional[str] = None
    plus_one: Optional[str] = None

    def mapped_fields(self) -> Dict[str, str]:
        return {field: header for field, header in self.model_dump().items() if header}

class ImportCommit(BaseModel):
    """Second step of the import wizard"""
    sheet: Optional[str] = None
    mapping: Optional[ColumnMapping] = None

class SheetSelection(BaseModel):
    sheet: str

class MappedGuestRow(BaseModel):
    """A row already mapped to guest fields by the client"""
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    dietary: Optional[str] = None
    plus_one: bool = Field(False, alias="plusOne")

    class Config:
        populate_by_name = True

class MappedImport(BaseModel):
    guests: List[MappedGuestRow]

class ImportPreview(BaseModel):
    """Result of uploading a file, before anything is written"""
    upload_id: str
    filename: str
    sheets: List[str]
    needs_sheet_selection: bool
    sheet: Optional[str] = None
    headers: List[str] = []
    suggested_mapping: Optional[ColumnMapping] = None
    preview_rows: List[Dict[str, str]] = []
    total_rows: int = 0

class ImportResult(BaseModel):
    """Outcome of an import call"""
    needs_sheet_selection: bool = False
    sheets: List[str] = []
    sheet: Optional[str] = None
    mapping: Optional[ColumnMapping] = None
    imported: int = 0
    skipped: int = 0
