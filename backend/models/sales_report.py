"""
Studio Ops - Sales report import models

The extracted report itself travels as a plain dict (shape produced by
services/sales_report_csv.py and services/sales_report_llm.py).
"""

from typing import Optional, Dict, Any
from pydantic import BaseModel


class SalesReportParseRequest(BaseModel):
    content: Optional[str] = None  # CSV / PDF text, or base64 PNG
    file_name: Optional[str] = None
    is_base64_image: bool = False


class ImportOptions(BaseModel):
    create_new_clients: bool = True
    update_existing: bool = True
    create_tasks: bool = True
    dry_run: bool = False


class SalesReportImportRequest(BaseModel):
    extracted_report: Optional[Dict[str, Any]] = None
    options: ImportOptions = ImportOptions()
