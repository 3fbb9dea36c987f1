import uuid
from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from app import crud
from app.api.deps import get_db
from app.api.routes.documents import document_image_url
from app.models import Document, GalleryItem, GalleryPublic

router = APIRouter()


def to_gallery_item(document: Document) -> GalleryItem:
    observation = document.observation
    tree = observation.tree if observation else None
    reflections = observation.reflections if observation else []
    # Newest reflection represents the observation
    latest = max(reflections, key=lambda r: r.created_at, default=None)
    return GalleryItem(
        document_id=document.id,
        observation_id=document.observation_id,
        image_url=document_image_url(document.id),
        tree_id=tree.id if tree else None,
        tree_name=tree.common_name if tree else None,
        location_name=observation.location_name if observation else None,
        latitude=observation.latitude if observation else None,
        longitude=observation.longitude if observation else None,
        reflection_id=latest.id if latest else None,
        reflection=latest.text if latest else None,
        interpretation=latest.interpretation if latest else None,
        interpretation_status=latest.interpretation_status if latest else None,
        created_at=document.created_at,
    )


@router.get("/", response_model=GalleryPublic)
def read_gallery(
    session: Session = Depends(get_db),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    tree_id: uuid.UUID | None = None,
) -> Any:
    """
    Newest-first photos with their tree and reflection.
    """
    documents, count = crud.list_gallery_documents(
        session=session, skip=skip, limit=limit, tree_id=tree_id
    )
    return GalleryPublic(data=[to_gallery_item(d) for d in documents], count=count)
