import uuid
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from app import crud
from app.api.deps import get_db
from app.models import (
    Message,
    TreeCultural,
    TreeCulturalCreate,
    TreeCulturalDetail,
    TreeCulturalPublic,
    TreesPublic,
)

router = APIRouter()


@router.get("/", response_model=TreesPublic)
def read_trees(
    session: Session = Depends(get_db),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=100),
    q: str | None = Query(None, max_length=255),
) -> Any:
    """
    Retrieve trees from the cultural catalogue.
    """
    trees, count = crud.list_trees(session=session, skip=skip, limit=limit, q=q)
    return TreesPublic(
        data=[TreeCulturalPublic.model_validate(tree) for tree in trees], count=count
    )


@router.get("/{id}", response_model=TreeCulturalDetail)
def read_tree(id: uuid.UUID, session: Session = Depends(get_db)) -> Any:
    tree = session.get(TreeCultural, id)
    if not tree:
        raise HTTPException(status_code=404, detail="Tree not found")
    return TreeCulturalDetail.from_tree(tree)


@router.post("/", response_model=TreeCulturalPublic)
def create_tree(
    *, session: Session = Depends(get_db), tree_in: TreeCulturalCreate
) -> Any:
    if crud.get_tree_by_name(session=session, common_name=tree_in.common_name):
        raise HTTPException(
            status_code=409, detail="A tree with this name already exists."
        )
    try:
        return crud.create_tree(session=session, tree_in=tree_in)
    except IntegrityError:
        session.rollback()
        raise HTTPException(
            status_code=409, detail="A tree with this name already exists."
        )


@router.delete("/{id}", response_model=Message)
def delete_tree(id: uuid.UUID, session: Session = Depends(get_db)) -> Any:
    """
    Delete a tree. Observations of it are kept without a species.
    """
    tree = session.get(TreeCultural, id)
    if not tree:
        raise HTTPException(status_code=404, detail="Tree not found")
    session.delete(tree)
    session.commit()
    return Message(message="Tree deleted successfully")
