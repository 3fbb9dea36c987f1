import io
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from PIL import ExifTags, Image
from PIL.TiffImagePlugin import IFDRational
from sqlmodel import Session, create_engine
from sqlmodel.pool import StaticPool

from app.agent.artifacts import InterpretationResult
from app.agent.interpretation_agent import build_interpretation_prompt, get_interpretation_agent
from app.api.deps import get_db
from app.core.config import settings
from app.core.db import init_db
from app.main import app


class StubInterpreter:
    """Stands in for InterpretationAgent and records the prompts it was asked for."""

    def __init__(self, text: str = "The oak has sheltered councils for centuries.", status: str = "generated"):
        self.text = text
        self.status = status
        self.prompts: list[str] = []

    async def interpret(self, *, reflection_text, tree=None, observation=None) -> InterpretationResult:
        self.prompts.append(
            build_interpretation_prompt(
                reflection_text=reflection_text, tree=tree, observation=observation
            )
        )
        return InterpretationResult(text=self.text, status=self.status)


@pytest.fixture(name="session")
def session_fixture() -> Generator[Session, None, None]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    with Session(engine) as session:
        init_db(session)
        yield session


@pytest.fixture(name="upload_dir")
def upload_dir_fixture(tmp_path, monkeypatch):
    upload_dir = tmp_path / "uploads"
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(upload_dir))
    return upload_dir


@pytest.fixture(name="interpreter")
def interpreter_fixture() -> StubInterpreter:
    return StubInterpreter()


@pytest.fixture(name="client")
def client_fixture(session: Session, upload_dir, interpreter: StubInterpreter) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_db] = lambda: session
    app.dependency_overrides[get_interpretation_agent] = lambda: interpreter
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


def make_image_bytes(fmt: str = "PNG", size: tuple[int, int] = (8, 6)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, (34, 139, 34)).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture(name="png_bytes")
def png_bytes_fixture() -> bytes:
    return make_image_bytes("PNG")


@pytest.fixture(name="image_factory")
def image_factory_fixture():
    return make_image_bytes


@pytest.fixture(name="mpo_bytes")
def mpo_bytes_fixture() -> bytes:
    # Two-frame multi-picture JPEG as written by many phone cameras
    buffer = io.BytesIO()
    first = Image.new("RGB", (8, 6), (34, 139, 34))
    second = Image.new("RGB", (8, 6), (139, 69, 19))
    first.save(buffer, format="MPO", save_all=True, append_images=[second])
    return buffer.getvalue()


@pytest.fixture(name="gps_jpeg_bytes")
def gps_jpeg_bytes_fixture() -> bytes:
    """JPEG whose EXIF GPS block places it at 33°51'36"S 70°30'0"W."""
    exif = Image.Exif()
    exif[ExifTags.IFD.GPSInfo] = {
        ExifTags.GPS.GPSLatitudeRef: "S",
        ExifTags.GPS.GPSLatitude: (IFDRational(33, 1), IFDRational(51, 1), IFDRational(36, 1)),
        ExifTags.GPS.GPSLongitudeRef: "W",
        ExifTags.GPS.GPSLongitude: (IFDRational(70, 1), IFDRational(30, 1), IFDRational(0, 1)),
    }
    buffer = io.BytesIO()
    Image.new("RGB", (8, 6), (34, 139, 34)).save(buffer, format="JPEG", exif=exif)
    return buffer.getvalue()
