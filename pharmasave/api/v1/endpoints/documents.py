from typing import Any, List

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from pharmasave import crud, models, schemas
from pharmasave.api import deps
from pharmasave.api.errors import http_error
from pharmasave.core.exceptions import PharmaSaveError
from pharmasave.services.file_storage import StorageService, upload_pharmacy_document

router = APIRouter()


@router.post("/upload", response_model=schemas.PharmacyDocument)
async def upload_document(
    *,
    db: Session = Depends(deps.get_db),
    storage: StorageService = Depends(deps.get_storage),
    pharmacist: models.Pharmacist = Depends(deps.get_current_pharmacist),
    document_type: str = Form(...),
    file: UploadFile = File(...),
) -> Any:
    """
    Upload a verification document (pdf, jpg, jpeg or png, up to 10 MB).
    """
    content = await file.read()
    try:
        return upload_pharmacy_document(
            db,
            storage,
            pharmacy=pharmacist.pharmacy,
            document_type=document_type,
            filename=file.filename or "document",
            content=content,
        )
    except PharmaSaveError as e:
        raise http_error(e)


@router.get("/", response_model=List[schemas.PharmacyDocument])
def list_documents(
    *,
    db: Session = Depends(deps.get_db),
    pharmacist: models.Pharmacist = Depends(deps.get_current_pharmacist),
) -> Any:
    return crud.pharmacy_document.get_by_pharmacy(db, pharmacy_id=pharmacist.pharmacy_id)
