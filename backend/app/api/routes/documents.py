import logging
import uuid
from typing import Any

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import FileResponse
from sqlmodel import Session

from app import crud
from app.api.deps import CurrentUser, InterpreterDep, get_db
from app.core.config import settings
from app.models import (
    Document,
    DocumentPublic,
    DocumentUploadPublic,
    Message,
    Observation,
    ObservationPublic,
    Reflection,
    ReflectionPublic,
    TreeCultural,
)
from app.storage import delete_upload, save_upload, upload_path, validate_image_upload

router = APIRouter()
logger = logging.getLogger(__name__)


def document_image_url(document_id: uuid.UUID) -> str:
    return f"{settings.API_V1_STR}/documents/{document_id}/file"


def resolve_location(
    latitude: float | None,
    longitude: float | None,
    exif_latitude: float | None,
    exif_longitude: float | None,
) -> tuple[float | None, float | None]:
    """Form coordinates win; EXIF GPS is used only when the form gives none."""
    if (latitude is None) != (longitude is None):
        raise HTTPException(
            status_code=400,
            detail="latitude and longitude must be provided together",
        )
    if latitude is not None:
        return latitude, longitude
    return exif_latitude, exif_longitude


@router.post("/", response_model=DocumentUploadPublic)
async def upload_document(
    *,
    session: Session = Depends(get_db),
    current_user: CurrentUser,
    interpreter: InterpreterDep,
    file: UploadFile = File(...),
    reflection: str = Form(..., max_length=5000),
    tree_id: uuid.UUID | None = Form(None),
    location_name: str | None = Form(None, max_length=255),
    latitude: float | None = Form(None, ge=-90, le=90),
    longitude: float | None = Form(None, ge=-180, le=180),
) -> Any:
    """
    Upload a tree photo with a reflection, store both and generate the
    cultural interpretation.
    """
    reflection_text = reflection.strip()
    if not reflection_text:
        raise HTTPException(status_code=400, detail="Reflection text must not be empty.")

    tree: TreeCultural | None = None
    if tree_id is not None:
        tree = session.get(TreeCultural, tree_id)
        if not tree:
            raise HTTPException(status_code=404, detail="Tree not found")

    content = await file.read()
    image_info = validate_image_upload(file.content_type, content)
    lat, lng = resolve_location(
        latitude, longitude, image_info.latitude, image_info.longitude
    )

    stored_filename = save_upload(content, file.content_type)
    try:
        observation = Observation(
            user_id=current_user.id,
            tree_id=tree.id if tree else None,
            location_name=location_name,
            latitude=lat,
            longitude=lng,
        )
        document = Document(
            filename=file.filename or "unknown",
            stored_filename=stored_filename,
            content_type=file.content_type or "application/octet-stream",
            size_bytes=len(content),
            width=image_info.width,
            height=image_info.height,
            observation_id=observation.id,
        )
        reflection_row = Reflection(
            text=reflection_text,
            observation_id=observation.id,
            user_id=current_user.id,
        )
        session.add(observation)
        session.add(document)
        session.add(reflection_row)
        session.commit()
    except Exception:
        session.rollback()
        delete_upload(stored_filename)
        raise
    session.refresh(observation)
    session.refresh(document)

    result = await interpreter.interpret(
        reflection_text=reflection_text, tree=tree, observation=observation
    )
    reflection_row = crud.update_reflection_interpretation(
        session=session,
        reflection_id=reflection_row.id,
        interpretation=result.text,
        status=result.status,
    )
    logger.info(
        "Stored document %s for observation %s (interpretation %s)",
        document.id,
        observation.id,
        result.status,
    )

    return DocumentUploadPublic(
        document=DocumentPublic.model_validate(document),
        observation=ObservationPublic.model_validate(observation),
        reflection=ReflectionPublic.model_validate(reflection_row),
        image_url=document_image_url(document.id),
    )


@router.get("/{id}", response_model=DocumentPublic)
def read_document(id: uuid.UUID, session: Session = Depends(get_db)) -> Any:
    """
    Retrieve document metadata.
    """
    document = session.get(Document, id)
    if not document:
        raise HTTPException(status_code=404, detail="Document not found")
    return document


@router.get("/{id}/file")
def read_document_file(id: uuid.UUID, session: Session = Depends(get_db)) -> FileResponse:
    """
    Serve the stored image.
    """
    document = session.get(Document, id)
    if not document:
        raise HTTPException(status_code=404, detail="Document not found")
    path = upload_path(document.stored_filename)
    if not path.is_file():
        logger.error("Image file %s missing for document %s", path, document.id)
        raise HTTPException(status_code=404, detail="Image file not found")
    return FileResponse(path, media_type=document.content_type)


@router.delete("/{id}", response_model=Message)
def delete_document(id: uuid.UUID, session: Session = Depends(get_db)) -> Any:
    """
    Delete a document and its image file. An observation left without photos
    is deleted together with its reflections.
    """
    document = session.get(Document, id)
    if not document:
        raise HTTPException(status_code=404, detail="Document not found")

    stored_filename = document.stored_filename
    observation = document.observation
    session.delete(document)
    if observation is not None and all(d.id == document.id for d in observation.documents):
        session.delete(observation)
    session.commit()

    delete_upload(stored_filename)
    return Message(message="Document deleted successfully")
