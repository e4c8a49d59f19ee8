"""
Shared pytest fixtures.

- In-memory SQLite session per test
- In-process fakes for the object store and the inference service
- Staff accounts and an authenticated TestClient per role
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["CLOUDINARY_CLOUD_NAME"] = "demo"
os.environ["STORAGE_BUCKET"] = "breast-cancer-images"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from core.database import get_db, init_db
from core.exceptions import InferenceError, StorageError
from core.security import AuthContext, create_token_for_user, get_password_hash
from models.enums import UserRole
from repositories.medical_repo import MedicalRepository
from repositories.user_repo import UserRepository
from services.ai_service import AIService, Prediction, artifact_filename
from services.storage_service import StorageService, get_storage_service
from services.ai_service import get_ai_service

BUCKET = "breast-cancer-images"


# ============================================================================
# Fakes
# ============================================================================

class FakeStorage(StorageService):
    """Dict-backed object store; URL resolution stays the real one."""

    def __init__(self):
        super().__init__(default_bucket=BUCKET)
        self.objects = {}
        self.failing_prefixes = set()

    def upload(self, bucket, path, data, overwrite=False, content_type=None):
        if any(path.startswith(p) for p in self.failing_prefixes):
            raise StorageError(f"Upload of {path} failed: permission denied")
        self.objects[(bucket, path)] = data

    def download(self, bucket, path):
        try:
            return self.objects[(bucket, path)]
        except KeyError:
            raise StorageError(f"Object {path} not found")


class FakeAI(AIService):
    """Returns a canned prediction or raises a configured error."""

    def __init__(self):
        super().__init__(base_url="http://ai.test")
        self.result = {"class": "malignant", "confidence": 0.93}
        self.error = None
        self.artifact_error = None
        self.artifacts = {}
        self.calls = []

    def predict(self, image_bytes, filename="image.png", content_type="image/png"):
        self.calls.append((image_bytes, filename))
        if self.error:
            raise self.error
        data = dict(self.result)
        return Prediction(
            label=data["class"],
            confidence=data["confidence"],
            gradcam_path=data.get("gradcam_path"),
            raw=data,
        )

    def fetch_artifact(self, ref):
        if self.artifact_error:
            raise self.artifact_error
        filename = artifact_filename(ref)
        if filename not in self.artifacts:
            raise InferenceError(f"Failed to fetch artifact {filename}: 404")
        return filename, self.artifacts[filename]


# ============================================================================
# Database
# ============================================================================

@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def ai():
    return FakeAI()


# ============================================================================
# Staff & patients
# ============================================================================

@pytest.fixture
def admin_user(db_session):
    return UserRepository(db_session).create_user(
        name="Admin", email="admin@test.com",
        hashed_password=get_password_hash("adminpass"), role=UserRole.ADMIN,
    )


@pytest.fixture
def doctor_user(db_session):
    return UserRepository(db_session).create_user(
        name="Dr. Test", email="doctor@test.com",
        hashed_password=get_password_hash("doctorpass"), role=UserRole.DOCTOR,
        specialization="Radiology",
    )


@pytest.fixture
def doctor_auth(doctor_user):
    return AuthContext(user_id=doctor_user.id, email=doctor_user.email, role=UserRole.DOCTOR)


@pytest.fixture
def admin_auth(admin_user):
    return AuthContext(user_id=admin_user.id, email=admin_user.email, role=UserRole.ADMIN)


@pytest.fixture
def patient(db_session):
    return MedicalRepository(db_session).create_patient(
        name="Jane Doe", email="jane@test.com", phone="0812", address="Jl. Mawar 1",
    )


# ============================================================================
# API clients
# ============================================================================

@pytest.fixture
def app(engine, storage, ai):
    from main import create_app

    app = create_app(create_tables=False)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        db = TestingSession()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage_service] = lambda: storage
    app.dependency_overrides[get_ai_service] = lambda: ai
    return app


@pytest.fixture
def api_client(app):
    """Unauthenticated client."""
    return TestClient(app)


@pytest.fixture
def admin_client(app, admin_user):
    client = TestClient(app)
    client.headers["Authorization"] = f"Bearer {create_token_for_user(admin_user)}"
    return client


@pytest.fixture
def doctor_client(app, doctor_user):
    client = TestClient(app)
    client.headers["Authorization"] = f"Bearer {create_token_for_user(doctor_user)}"
    return client
