import io
import os
from decimal import Decimal

import pytest
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.datastructures import FileStorage

from conftest import image_file
from storefront.errors import NotFound, ValidationError
from storefront.extensions import db
from storefront.models import OrphanedFile, Product, ProductImage
from storefront.services import product_writer
from storefront.services.asset_store import AssetStore
from storefront.services.product_fields import ProductFields

pytestmark = pytest.mark.usefixtures("ctx")


def _image_urls(product_id):
    rows = (
        ProductImage.query.filter_by(product_id=product_id)
        .order_by(ProductImage.id.asc())
        .all()
    )
    return [r.image_url for r in rows]


def _files_on_disk(upload_dir):
    return sorted(os.listdir(upload_dir)) if os.path.isdir(upload_dir) else []


def _name(url):
    return url.rsplit("/", 1)[1]


def _create(store, *filenames, **fields):
    fields.setdefault("name", "Sprayer X")
    return product_writer.create_product(
        ProductFields(**fields), [image_file(n) for n in filenames], store
    )


def _assert_main_image_invariant():
    for p in Product.query.all():
        urls = _image_urls(p.id)
        assert p.image == (urls[0] if urls else None)


# --- create -----------------------------------------------------------------

def test_create_stores_each_image_and_first_becomes_main(store, upload_dir):
    result = _create(store, "fileA.jpg", "fileB.jpg", price=Decimal("1000"))

    assert result.images_uploaded == 2
    urls = _image_urls(result.product_id)
    assert len(urls) == 2
    assert all(u.startswith("/uploads/images-") and u.endswith(".jpg") for u in urls)

    product = db.session.get(Product, result.product_id)
    assert product.image == urls[0]
    assert product.price == Decimal("1000.00")
    assert product.stock_count == 0
    assert product.in_stock is True
    assert product.featured is False
    assert product.specifications == []
    assert _files_on_disk(upload_dir) == sorted(_name(u) for u in urls)


def test_create_without_images_has_no_main_image(store):
    result = _create(store)

    assert result.images_uploaded == 0
    assert db.session.get(Product, result.product_id).image is None


def test_create_rolls_back_and_removes_files_when_image_insert_fails(store, upload_dir, monkeypatch):
    original = product_writer._attach_images

    def failing(product_id, urls):
        original(product_id, urls[:1])
        raise SQLAlchemyError("insert into product_images failed")

    monkeypatch.setattr(product_writer, "_attach_images", failing)

    with pytest.raises(SQLAlchemyError):
        _create(store, "fileA.jpg", "fileB.jpg")

    assert Product.query.count() == 0
    assert ProductImage.query.count() == 0
    assert _files_on_disk(upload_dir) == []


def test_create_rejects_non_image_upload_and_writes_nothing(store, upload_dir):
    text_file = FileStorage(stream=io.BytesIO(b"just text"), filename="notes.txt", content_type="text/plain")

    with pytest.raises(ValidationError):
        product_writer.create_product(
            ProductFields(name="Pump"), [image_file("ok.jpg"), text_file], store
        )

    assert Product.query.count() == 0
    assert _files_on_disk(upload_dir) == []


def test_create_rejects_file_posing_as_image(store, upload_dir):
    fake = FileStorage(stream=io.BytesIO(b"\x00\x01garbage"), filename="fake.jpg", content_type="image/jpeg")

    with pytest.raises(ValidationError):
        product_writer.create_product(ProductFields(name="Pump"), [fake], store)

    assert _files_on_disk(upload_dir) == []


def test_create_enforces_image_limit(store):
    with pytest.raises(ValidationError):
        product_writer.create_product(
            ProductFields(name="Pump"), [image_file("a.jpg"), image_file("b.jpg")], store, max_images=1
        )
    assert Product.query.count() == 0


# --- update -----------------------------------------------------------------

def test_update_keeps_listed_images_and_appends_new_ones(store, upload_dir):
    created = _create(store, "fileA.jpg", "fileB.jpg", price=Decimal("1000"))
    url_a, url_b = _image_urls(created.product_id)

    result = product_writer.update_product(
        created.product_id,
        ProductFields(name="Sprayer X", price=Decimal("1200")),
        [image_file("fileC.jpg")],
        [url_b],
        store,
    )

    assert result.images_uploaded == 1
    assert result.images_deleted == 1
    urls = _image_urls(created.product_id)
    assert urls[0] == url_b
    assert len(urls) == 2
    url_c = urls[1]

    product = db.session.get(Product, created.product_id)
    assert product.image == url_b
    assert product.price == Decimal("1200.00")
    assert _files_on_disk(upload_dir) == sorted([_name(url_b), _name(url_c)])
    assert _name(url_a) not in _files_on_disk(upload_dir)


def test_update_with_empty_keep_list_removes_every_image(store, upload_dir):
    created = _create(store, "fileA.jpg", "fileB.jpg")

    result = product_writer.update_product(
        created.product_id, ProductFields(name="Sprayer X"), [], [], store
    )

    assert result.images_deleted == 2
    assert _image_urls(created.product_id) == []
    assert db.session.get(Product, created.product_id).image is None
    assert _files_on_disk(upload_dir) == []


def test_update_unknown_product_is_not_found_and_discards_uploads(store, upload_dir):
    with pytest.raises(NotFound):
        product_writer.update_product(
            999, ProductFields(name="Ghost"), [image_file("x.jpg")], [], store
        )
    assert _files_on_disk(upload_dir) == []


def test_update_failure_restores_previous_state(store, upload_dir, monkeypatch):
    created = _create(store, "fileA.jpg", "fileB.jpg")
    before = _image_urls(created.product_id)

    def failing(product_id, urls):
        raise SQLAlchemyError("insert failed")

    monkeypatch.setattr(product_writer, "_attach_images", failing)

    with pytest.raises(SQLAlchemyError):
        product_writer.update_product(
            created.product_id, ProductFields(name="Renamed"), [image_file("fileC.jpg")], [], store
        )

    product = db.session.get(Product, created.product_id)
    assert product.name == "Sprayer X"
    assert product.image == before[0]
    assert _image_urls(created.product_id) == before
    # the old files are untouched, the staged one is gone
    assert _files_on_disk(upload_dir) == sorted(_name(u) for u in before)


def test_main_image_is_smallest_surviving_id(store):
    created = _create(store, "a.jpg", "b.jpg", "c.jpg")
    url_a, url_b, url_c = _image_urls(created.product_id)

    product_writer.update_product(
        created.product_id, ProductFields(name="Sprayer X"), [image_file("d.jpg")], [url_c, url_b], store
    )

    urls = _image_urls(created.product_id)
    assert urls[:2] == [url_b, url_c]
    assert db.session.get(Product, created.product_id).image == url_b
    _assert_main_image_invariant()


# --- single image delete ------------------------------------------------------

def test_deleting_main_image_promotes_next_smallest(store, upload_dir):
    created = _create(store, "fileB.jpg", "fileC.jpg")
    url_b, url_c = _image_urls(created.product_id)

    product_writer.delete_product_image(created.product_id, url_b, store)

    assert db.session.get(Product, created.product_id).image == url_c
    assert _files_on_disk(upload_dir) == [_name(url_c)]

    product_writer.delete_product_image(created.product_id, url_c, store)

    assert db.session.get(Product, created.product_id).image is None
    assert _files_on_disk(upload_dir) == []


def test_deleting_other_image_keeps_main(store):
    created = _create(store, "a.jpg", "b.jpg")
    url_a, url_b = _image_urls(created.product_id)

    product_writer.delete_product_image(created.product_id, url_b, store)

    assert db.session.get(Product, created.product_id).image == url_a
    _assert_main_image_invariant()


def test_deleting_missing_image_is_not_found(store):
    created = _create(store, "a.jpg")
    (url_a,) = _image_urls(created.product_id)

    product_writer.delete_product_image(created.product_id, url_a, store)
    with pytest.raises(NotFound):
        product_writer.delete_product_image(created.product_id, url_a, store)
    with pytest.raises(NotFound):
        product_writer.delete_product_image(created.product_id, "/uploads/never.jpg", store)


# --- product delete -----------------------------------------------------------

def test_delete_product_removes_rows_and_files(store, upload_dir):
    created = _create(store, "a.jpg", "b.jpg")
    keep = _create(store, "c.jpg", name="Other")

    assert product_writer.delete_product(created.product_id, store) == 2

    assert db.session.get(Product, created.product_id) is None
    assert _image_urls(created.product_id) == []
    assert _files_on_disk(upload_dir) == [_name(u) for u in _image_urls(keep.product_id)]


def test_delete_unknown_product_affects_nothing(store):
    _create(store, "a.jpg")

    assert product_writer.delete_product(12345, store) == 0
    assert Product.query.count() == 1
    assert ProductImage.query.count() == 1


def test_failed_file_deletion_is_recorded_and_purged_later(store, upload_dir, monkeypatch):
    created = _create(store, "a.jpg", "b.jpg")

    def locked(self, url):
        raise PermissionError("file is locked")

    monkeypatch.setattr(AssetStore, "delete", locked)
    assert product_writer.delete_product(created.product_id, store) == 2

    assert Product.query.count() == 0
    assert OrphanedFile.query.count() == 2
    assert len(_files_on_disk(upload_dir)) == 2

    monkeypatch.undo()
    assert product_writer.purge_orphaned_files(store) == 2
    assert OrphanedFile.query.count() == 0
    assert _files_on_disk(upload_dir) == []


def test_each_upload_is_inspected_once(store, monkeypatch):
    seen = []
    real_inspect = AssetStore.inspect

    def counting(self, fs):
        seen.append(fs.filename)
        return real_inspect(self, fs)

    monkeypatch.setattr(AssetStore, "inspect", counting)

    _create(store, "a.jpg", "b.jpg")

    assert seen == ["a.jpg", "b.jpg"]
