import io

import pytest
from PIL import Image
from werkzeug.datastructures import FileStorage

from storefront.app import create_app
from storefront.config import TestingConfig
from storefront.extensions import db
from storefront.models import Admin
from storefront.services.asset_store import AssetStore

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "s3cret-pass"


def image_bytes(fmt: str = "JPEG", color=(200, 30, 30)) -> io.BytesIO:
    buf = io.BytesIO()
    Image.new("RGB", (8, 8), color).save(buf, format=fmt)
    buf.seek(0)
    return buf


def image_upload(name: str = "photo.jpg", fmt: str = "JPEG") -> tuple:
    """Multipart tuple for the Flask test client."""
    return (image_bytes(fmt), name)


def image_file(name: str = "photo.jpg", fmt: str = "JPEG", content_type: str = "image/jpeg") -> FileStorage:
    """FileStorage as the upload layer hands it to services."""
    return FileStorage(stream=image_bytes(fmt), filename=name, content_type=content_type)


@pytest.fixture
def app(tmp_path):
    class _Config(TestingConfig):
        SQLALCHEMY_DATABASE_URI = "sqlite:///" + str(tmp_path / "test.db").replace("\\", "/")
        UPLOAD_FOLDER = str(tmp_path / "uploads")

    app = create_app(_Config)
    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def upload_dir(app):
    return app.config["UPLOAD_FOLDER"]


@pytest.fixture
def store(app):
    return AssetStore.from_app(app)


@pytest.fixture
def ctx(app):
    """App context for service-level tests (do not use the client inside it)."""
    with app.app_context():
        yield
        db.session.remove()


@pytest.fixture
def admin(app):
    with app.app_context():
        a = Admin(username=ADMIN_USERNAME)
        a.set_password(ADMIN_PASSWORD)
        db.session.add(a)
        db.session.commit()
        return a.id


@pytest.fixture
def admin_token(client, admin):
    resp = client.post(
        "/api/admin/login",
        json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD},
    )
    assert resp.status_code == 200
    return resp.get_json()["token"]


@pytest.fixture
def admin_headers(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}
