import uuid

from sqlmodel import Session, col, func, select

from app.models import (
    Document,
    DocumentCreate,
    Observation,
    ObservationCreate,
    Reflection,
    ReflectionCreate,
    TreeCultural,
    TreeCulturalCreate,
    User,
    UserCreate,
)


def create_user(*, session: Session, user_create: UserCreate) -> User:
    db_obj = User.model_validate(user_create)
    session.add(db_obj)
    session.commit()
    session.refresh(db_obj)
    return db_obj


def get_user_by_email(*, session: Session, email: str) -> User | None:
    statement = select(User).where(User.email == email)
    session_user = session.exec(statement).first()
    return session_user


def create_tree(*, session: Session, tree_in: TreeCulturalCreate) -> TreeCultural:
    db_tree = TreeCultural.model_validate(tree_in)
    session.add(db_tree)
    session.commit()
    session.refresh(db_tree)
    return db_tree


def get_tree_by_name(*, session: Session, common_name: str) -> TreeCultural | None:
    statement = select(TreeCultural).where(
        func.lower(TreeCultural.common_name) == common_name.strip().lower()
    )
    return session.exec(statement).first()


def list_trees(
    *, session: Session, skip: int = 0, limit: int = 100, q: str | None = None
) -> tuple[list[TreeCultural], int]:
    statement = select(TreeCultural)
    count_statement = select(func.count()).select_from(TreeCultural)
    if q:
        pattern = f"%{q.strip()}%"
        name_filter = col(TreeCultural.common_name).ilike(pattern) | col(
            TreeCultural.scientific_name
        ).ilike(pattern)
        statement = statement.where(name_filter)
        count_statement = count_statement.where(name_filter)
    count = session.exec(count_statement).one()
    trees = session.exec(
        statement.order_by(col(TreeCultural.common_name)).offset(skip).limit(limit)
    ).all()
    return list(trees), count


def create_observation(*, session: Session, observation_in: ObservationCreate) -> Observation:
    db_observation = Observation.model_validate(observation_in)
    session.add(db_observation)
    session.commit()
    session.refresh(db_observation)
    return db_observation


def create_document(*, session: Session, document_in: DocumentCreate) -> Document:
    db_document = Document.model_validate(document_in)
    session.add(db_document)
    session.commit()
    session.refresh(db_document)
    return db_document


def create_reflection(*, session: Session, reflection_in: ReflectionCreate) -> Reflection:
    db_reflection = Reflection.model_validate(reflection_in)
    session.add(db_reflection)
    session.commit()
    session.refresh(db_reflection)
    return db_reflection


def update_reflection_interpretation(
    *, session: Session, reflection_id: uuid.UUID, interpretation: str, status: str
) -> Reflection | None:
    db_reflection = session.get(Reflection, reflection_id)
    if db_reflection:
        db_reflection.interpretation = interpretation
        db_reflection.interpretation_status = status
        session.add(db_reflection)
        session.commit()
        session.refresh(db_reflection)
    return db_reflection


def list_gallery_documents(
    *,
    session: Session,
    skip: int = 0,
    limit: int = 20,
    tree_id: uuid.UUID | None = None,
) -> tuple[list[Document], int]:
    statement = select(Document).join(Observation)
    count_statement = select(func.count()).select_from(Document).join(Observation)
    if tree_id is not None:
        statement = statement.where(Observation.tree_id == tree_id)
        count_statement = count_statement.where(Observation.tree_id == tree_id)
    count = session.exec(count_statement).one()
    documents = session.exec(
        statement.order_by(col(Document.created_at).desc()).offset(skip).limit(limit)
    ).all()
    return list(documents), count
