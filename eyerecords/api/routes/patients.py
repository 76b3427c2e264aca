"""Patient record routes.

Create, edit, search and snapshot export/import of visit records. The
required-field checks of the record form happen here; the store itself
never validates them.
"""
from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request, Response

from eyerecords.api.deps import get_codec, get_query_engine, get_record_store
from eyerecords.models.patient import PatientRecord, SearchOptions, SearchType
from eyerecords.services.errors import (
    MalformedImport,
    NothingToExport,
    PersistenceFailure,
    StorageUnavailable,
)
from eyerecords.services.logger import log_debug
from eyerecords.services.record_codec import export_filename

router = APIRouter(prefix="/patients", tags=["patients"])


def _check_required(record: PatientRecord):
    if not record.patient_name.strip():
        raise HTTPException(status_code=422, detail="Patient name is required")
    if not record.mobile_number.strip():
        raise HTTPException(status_code=422, detail="Mobile number is required")
    if not record.remarks.strip():
        raise HTTPException(status_code=422, detail="Remarks are required")


def _dump(record: PatientRecord) -> dict:
    return record.to_document()


@router.get("/")
async def list_patients(store=Depends(get_record_store)):
    try:
        records = store.list()
    except StorageUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return {"items": [_dump(r) for r in records]}


@router.post("/", status_code=201)
async def create_patient(
    payload: PatientRecord = Body(...),
    store=Depends(get_record_store),
):
    _check_required(payload)
    if payload.id:
        raise HTTPException(status_code=400, detail="New records must not carry an id")

    try:
        stored = store.create(payload)
    except (PersistenceFailure, StorageUnavailable) as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc

    return {"message": "Patient record saved successfully", "item": _dump(stored)}


@router.put("/{record_id}")
async def update_patient(
    record_id: str,
    payload: PatientRecord = Body(...),
    store=Depends(get_record_store),
):
    _check_required(payload)
    if payload.id and payload.id != record_id:
        raise HTTPException(status_code=400, detail="Record id in body does not match the URL")

    try:
        updated = store.update(payload.model_copy(update={"id": record_id}))
    except (PersistenceFailure, StorageUnavailable) as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc

    if not updated:
        raise HTTPException(status_code=404, detail="Record not found")
    return {"message": "Patient record updated successfully"}


@router.get("/search")
async def search_patients(
    query: str = Query(..., min_length=1),
    type_: SearchType = Query("mobile", alias="type"),
    engine=Depends(get_query_engine),
):
    options = SearchOptions(query=query, type=type_)
    if not options.query:
        raise HTTPException(status_code=422, detail="Search query is required")

    try:
        results = engine.search(options.query, options.type)
    except StorageUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc

    log_debug("search", {"query": options.query, "type": options.type, "matches": len(results)})
    return {"items": [_dump(r) for r in results]}


@router.get("/export")
async def export_patients(codec=Depends(get_codec)):
    try:
        text = codec.export()
    except NothingToExport:
        return {"message": "No records to export"}
    except StorageUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc

    return Response(
        content=text,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )


@router.post("/import")
async def import_patients(request: Request, codec=Depends(get_codec)):
    """Merge a snapshot (the JSON body) into the store. Existing ids are never overwritten."""
    raw = await request.body()
    try:
        result = codec.import_text(raw.decode("utf-8"))
    except UnicodeDecodeError as exc:
        raise HTTPException(status_code=400, detail="Import must be UTF-8 text") from exc
    except MalformedImport as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except (PersistenceFailure, StorageUnavailable) as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc

    return {
        "message": f"Imported {result.added_count} of {result.parsed_count} records",
        "added": result.added_count,
        "parsed": result.parsed_count,
    }
