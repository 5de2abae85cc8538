from fastapi import APIRouter, Depends, HTTPException, Request, Response

from providers.storage.shot_store import ShotStore
from schemas.shot import CsvImportReq
from services.api.app.core.deps import get_store
from services.api.app.core.exceptions import PersistenceError, ValidationError
from workers.tools.csv_codec import export_csv, import_csv

router = APIRouter()

CSV_ALLOW = "GET, POST"
CSV_UNSUPPORTED = ["PUT", "PATCH", "DELETE", "HEAD", "OPTIONS", "TRACE"]
EXPORT_FILENAME = "shots-export.csv"


@router.post("/csv")
def csv_import(req: CsvImportReq, store: ShotStore = Depends(get_store)):
    if not req.csvData:
        raise ValidationError("CSV data is required")

    result = import_csv(store, req.csvData)
    if not result:
        raise PersistenceError("Failed to import CSV", cause=result.error)
    return {"message": "CSV imported successfully"}


@router.get("/csv")
def csv_export(store: ShotStore = Depends(get_store)):
    csv_text = export_csv(store)
    if not csv_text:
        raise PersistenceError("Failed to export CSV")
    return Response(
        content=csv_text,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
    )


@router.api_route("/csv", methods=CSV_UNSUPPORTED, include_in_schema=False)
def csv_method_not_allowed(request: Request):
    raise HTTPException(405, detail=f"Method {request.method} Not Allowed", headers={"Allow": CSV_ALLOW})
