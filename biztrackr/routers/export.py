"""
Spreadsheet export router.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Response

from biztrackr.auth.dependencies import get_current_owner_id
from biztrackr.engine.aggregator import parse_date_param, resolve_date_range
from biztrackr.engine.errors import ValidationFailure
from biztrackr.engine.export import WorkbookExporter
from biztrackr.models import ExportFormat, ExportType
from biztrackr.storage import StorageBackend, get_storage
from biztrackr.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


@router.get("/")
def export_records(
    owner_id: str = Depends(get_current_owner_id),
    storage: StorageBackend = Depends(get_storage),
    type: str = "all",
    format: str = "xlsx",
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
):
    """
    Download records as xlsx (one sheet per collection) or csv (one collection).

    Args:
        type: all, sales, expenses, employees or inventory
        format: xlsx or csv
        start_date: Inclusive start for sales and expenses (needs end_date)
        end_date: Inclusive end for sales and expenses (needs start_date)
    """
    try:
        export_type = ExportType(type)
        export_format = ExportFormat(format)
    except ValueError as e:
        raise ValidationFailure(
            "Unsupported export type or format",
            details={
                "type": type,
                "format": format,
                "allowed_types": [t.value for t in ExportType],
                "allowed_formats": [f.value for f in ExportFormat],
            },
        ) from e

    start = parse_date_param(start_date, "start_date")
    end = parse_date_param(end_date, "end_date")
    if start and end:
        resolve_date_range(start, end)

    export = WorkbookExporter(storage).export(
        owner_id, export_type, export_format, start_date=start, end_date=end
    )
    return Response(
        content=export.content,
        media_type=export.media_type,
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )
