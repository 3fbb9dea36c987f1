import json
import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import EmailStr
from sqlalchemy import DateTime, Text
from sqlmodel import Field, Relationship, SQLModel


def get_datetime_utc() -> datetime:
    return datetime.now(timezone.utc)


def parse_json_blob(blob: str | None) -> Any:
    """Best-effort parse of a JSON-in-text column for display."""
    if not blob:
        return None
    try:
        return json.loads(blob)
    except (TypeError, ValueError):
        return None


# Shared properties
class UserBase(SQLModel):
    email: EmailStr = Field(unique=True, index=True, max_length=255)
    is_active: bool = True
    full_name: str | None = Field(default=None, max_length=255)


# Properties to receive via API on creation
class UserCreate(UserBase):
    pass


# Database model, database table inferred from class name
class User(UserBase, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    observations: list["Observation"] = Relationship(
        back_populates="user", cascade_delete=True
    )


# Properties to return via API, id is always required
class UserPublic(UserBase):
    id: uuid.UUID
    created_at: datetime | None = None


# Generic message
class Message(SQLModel):
    message: str


# Tree catalogue

class TreeCulturalBase(SQLModel):
    common_name: str = Field(unique=True, index=True, min_length=1, max_length=255)
    scientific_name: str | None = Field(default=None, unique=True, max_length=255)
    region: str | None = Field(default=None, max_length=255)
    # JSON-in-text blobs, stored verbatim and only parsed for display
    cultural_significance: str | None = Field(default=None, sa_type=Text)
    traditional_uses: str | None = Field(default=None, sa_type=Text)


class TreeCulturalCreate(TreeCulturalBase):
    pass


class TreeCultural(TreeCulturalBase, table=True):
    __tablename__ = "tree_cultural"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    observations: list["Observation"] = Relationship(back_populates="tree")


class TreeCulturalPublic(TreeCulturalBase):
    id: uuid.UUID
    created_at: datetime | None = None


class TreeCulturalDetail(TreeCulturalPublic):
    cultural_significance_data: Any = None
    traditional_uses_data: Any = None

    @classmethod
    def from_tree(cls, tree: TreeCultural) -> "TreeCulturalDetail":
        return cls.model_validate(
            tree,
            update={
                "cultural_significance_data": parse_json_blob(tree.cultural_significance),
                "traditional_uses_data": parse_json_blob(tree.traditional_uses),
            },
        )


class TreesPublic(SQLModel):
    data: list[TreeCulturalPublic]
    count: int


# Observations

class ObservationBase(SQLModel):
    location_name: str | None = Field(default=None, max_length=255)
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)


class ObservationCreate(ObservationBase):
    user_id: uuid.UUID
    tree_id: uuid.UUID | None = None


class Observation(ObservationBase, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    observed_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    user_id: uuid.UUID = Field(
        foreign_key="user.id", nullable=False, ondelete="CASCADE"
    )
    tree_id: uuid.UUID | None = Field(
        default=None, foreign_key="tree_cultural.id", ondelete="SET NULL"
    )
    user: User | None = Relationship(back_populates="observations")
    tree: TreeCultural | None = Relationship(back_populates="observations")
    documents: list["Document"] = Relationship(
        back_populates="observation", cascade_delete=True
    )
    reflections: list["Reflection"] = Relationship(
        back_populates="observation", cascade_delete=True
    )


class ObservationPublic(ObservationBase):
    id: uuid.UUID
    user_id: uuid.UUID
    tree_id: uuid.UUID | None = None
    observed_at: datetime | None = None
    created_at: datetime | None = None


# Uploaded photos

class DocumentBase(SQLModel):
    filename: str = Field(max_length=255)
    content_type: str = Field(max_length=100)
    size_bytes: int = Field(ge=0)
    width: int | None = None
    height: int | None = None


class DocumentCreate(DocumentBase):
    observation_id: uuid.UUID
    stored_filename: str = Field(max_length=255)


class Document(DocumentBase, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    stored_filename: str = Field(unique=True, max_length=255)
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    observation_id: uuid.UUID = Field(
        foreign_key="observation.id", nullable=False, ondelete="CASCADE"
    )
    observation: Observation | None = Relationship(back_populates="documents")


class DocumentPublic(DocumentBase):
    id: uuid.UUID
    observation_id: uuid.UUID
    created_at: datetime | None = None


# Reflections

class ReflectionBase(SQLModel):
    text: str = Field(min_length=1, max_length=5000, sa_type=Text)


class ReflectionCreate(ReflectionBase):
    observation_id: uuid.UUID
    user_id: uuid.UUID


class Reflection(ReflectionBase, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    interpretation: str | None = Field(default=None, sa_type=Text)
    interpretation_status: str = Field(default="pending") # pending, generated, fallback
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    observation_id: uuid.UUID = Field(
        foreign_key="observation.id", nullable=False, ondelete="CASCADE"
    )
    user_id: uuid.UUID = Field(
        foreign_key="user.id", nullable=False, ondelete="CASCADE"
    )
    observation: Observation | None = Relationship(back_populates="reflections")


class ReflectionPublic(ReflectionBase):
    id: uuid.UUID
    observation_id: uuid.UUID
    user_id: uuid.UUID
    interpretation: str | None = None
    interpretation_status: str
    created_at: datetime | None = None


class DocumentUploadPublic(SQLModel):
    document: DocumentPublic
    observation: ObservationPublic
    reflection: ReflectionPublic
    image_url: str


class GalleryItem(SQLModel):
    document_id: uuid.UUID
    observation_id: uuid.UUID
    image_url: str
    tree_id: uuid.UUID | None = None
    tree_name: str | None = None
    location_name: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    reflection_id: uuid.UUID | None = None
    reflection: str | None = None
    interpretation: str | None = None
    interpretation_status: str | None = None
    created_at: datetime | None = None


class GalleryPublic(SQLModel):
    data: list[GalleryItem]
    count: int


class NarrationScript(SQLModel):
    reflection_id: uuid.UUID
    text: str
    lang: str
    rate: float
    pitch: float
