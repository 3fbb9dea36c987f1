from collections.abc import Generator
from typing import Annotated

from fastapi import Depends, HTTPException
from sqlmodel import Session

from app import crud
from app.agent.interpretation_agent import InterpretationAgent, get_interpretation_agent
from app.core.config import settings
from app.core.db import engine
from app.models import User


def get_db() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


SessionDep = Annotated[Session, Depends(get_db)]


def get_current_user(session: SessionDep) -> User:
    # Single local user deployment, the configured first user is always current
    user = crud.get_user_by_email(session=session, email=settings.FIRST_USER_EMAIL)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if not user.is_active:
        raise HTTPException(status_code=400, detail="Inactive user")
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]
InterpreterDep = Annotated[InterpretationAgent, Depends(get_interpretation_agent)]
