from sqlmodel import Session, func, select

from app.core.config import settings
from app.core.db import SEED_TREES, init_db, seed_trees
from app.models import TreeCultural, User


def test_init_db_is_idempotent(session: Session):
    init_db(session)

    users = session.exec(select(User)).all()
    assert [user.email for user in users] == [settings.FIRST_USER_EMAIL]
    tree_count = session.exec(select(func.count()).select_from(TreeCultural)).one()
    assert tree_count == len(SEED_TREES)


def test_seed_trees_skips_populated_catalogue(session: Session):
    assert seed_trees(session) == 0
