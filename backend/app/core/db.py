import json
import logging

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine, select

from app import crud
from app.core.config import settings
from app.models import TreeCultural, TreeCulturalCreate, UserCreate

logger = logging.getLogger(__name__)

engine = create_engine(
    settings.SQLALCHEMY_DATABASE_URI,
    connect_args={"check_same_thread": False},
)


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    if dbapi_connection.__class__.__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


SEED_TREES: list[dict] = [
    {
        "common_name": "English Oak",
        "scientific_name": "Quercus robur",
        "region": "Europe",
        "cultural_significance": {
            "symbolism": ["strength", "endurance", "hospitality"],
            "mythology": "Sacred to Zeus, Thor and the Celtic druids, whose name may derive from the word for oak.",
            "traditions": ["Royal Oak Day", "meeting place for village councils"],
        },
        "traditional_uses": ["ship building", "tanning with bark", "acorns as winter fodder"],
    },
    {
        "common_name": "Banyan",
        "scientific_name": "Ficus benghalensis",
        "region": "South Asia",
        "cultural_significance": {
            "symbolism": ["immortality", "shelter", "community"],
            "mythology": "Associated with Shiva as Dakshinamurthy, teaching in silence beneath its branches.",
            "traditions": ["Vat Purnima vows", "village gatherings under its canopy"],
        },
        "traditional_uses": ["shade for markets", "aerial roots for rope", "latex in folk medicine"],
    },
    {
        "common_name": "Ginkgo",
        "scientific_name": "Ginkgo biloba",
        "region": "East Asia",
        "cultural_significance": {
            "symbolism": ["hope", "resilience", "longevity"],
            "mythology": "Survivors of the Hiroshima bombing are honoured as hibakujumoku, the A-bombed trees.",
            "traditions": ["temple plantings", "autumn leaf viewing"],
        },
        "traditional_uses": ["roasted seeds", "leaf extracts in herbal practice"],
    },
    {
        "common_name": "Olive",
        "scientific_name": "Olea europaea",
        "region": "Mediterranean",
        "cultural_significance": {
            "symbolism": ["peace", "wisdom", "victory"],
            "mythology": "Athena's gift to Athens, chosen over Poseidon's spring.",
            "traditions": ["olive wreaths for Olympic victors", "anointing oil"],
        },
        "traditional_uses": ["oil", "lamp fuel", "hardwood carving"],
    },
    {
        "common_name": "Baobab",
        "scientific_name": "Adansonia digitata",
        "region": "Sub-Saharan Africa",
        "cultural_significance": {
            "symbolism": ["life", "ancestry", "gathering"],
            "mythology": "Told to have been planted upside down by a displeased god.",
            "traditions": ["storytelling beneath the tree", "resting place for griots"],
        },
        "traditional_uses": ["fruit pulp drinks", "bark fibre rope", "water storage in hollow trunks"],
    },
]


def init_db(session: Session) -> None:
    # Tables should be created with Alembic migrations in a multi-process deploy,
    # the local app creates them directly.
    SQLModel.metadata.create_all(session.get_bind())

    user = crud.get_user_by_email(session=session, email=settings.FIRST_USER_EMAIL)
    if not user:
        user_in = UserCreate(
            email=settings.FIRST_USER_EMAIL,
            full_name=settings.FIRST_USER_FULL_NAME,
        )
        user = crud.create_user(session=session, user_create=user_in)
        logger.info("Created default user %s", user.email)

    if settings.SEED_TREES:
        seed_trees(session)


def seed_trees(session: Session) -> int:
    """Insert the starter tree catalogue when the table is empty."""
    if session.exec(select(TreeCultural)).first():
        return 0
    for entry in SEED_TREES:
        tree_in = TreeCulturalCreate(
            common_name=entry["common_name"],
            scientific_name=entry["scientific_name"],
            region=entry["region"],
            cultural_significance=json.dumps(entry["cultural_significance"]),
            traditional_uses=json.dumps(entry["traditional_uses"]),
        )
        crud.create_tree(session=session, tree_in=tree_in)
    logger.info("Seeded %s trees", len(SEED_TREES))
    return len(SEED_TREES)
