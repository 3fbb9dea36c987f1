import uuid
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from app import crud
from app.api.deps import InterpreterDep, get_db
from app.models import Message, NarrationScript, Reflection, ReflectionPublic
from app.narration import build_narration_script

router = APIRouter()


def get_reflection_or_404(session: Session, id: uuid.UUID) -> Reflection:
    reflection = session.get(Reflection, id)
    if not reflection:
        raise HTTPException(status_code=404, detail="Reflection not found")
    return reflection


@router.get("/{id}", response_model=ReflectionPublic)
def read_reflection(id: uuid.UUID, session: Session = Depends(get_db)) -> Any:
    return get_reflection_or_404(session, id)


@router.post("/{id}/interpretation", response_model=ReflectionPublic)
async def regenerate_interpretation(
    id: uuid.UUID,
    interpreter: InterpreterDep,
    session: Session = Depends(get_db),
) -> Any:
    """
    Ask the generation endpoint again for this reflection's interpretation.
    """
    reflection = get_reflection_or_404(session, id)
    observation = reflection.observation
    result = await interpreter.interpret(
        reflection_text=reflection.text,
        tree=observation.tree if observation else None,
        observation=observation,
    )
    return crud.update_reflection_interpretation(
        session=session,
        reflection_id=reflection.id,
        interpretation=result.text,
        status=result.status,
    )


@router.get("/{id}/narration", response_model=NarrationScript)
def read_narration(id: uuid.UUID, session: Session = Depends(get_db)) -> Any:
    """
    Text prepared for the browser's speech synthesis.
    """
    reflection = get_reflection_or_404(session, id)
    return build_narration_script(reflection)


@router.delete("/{id}", response_model=Message)
def delete_reflection(id: uuid.UUID, session: Session = Depends(get_db)) -> Any:
    reflection = get_reflection_or_404(session, id)
    session.delete(reflection)
    session.commit()
    return Message(message="Reflection deleted successfully")
