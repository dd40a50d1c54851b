# storefront/services/product_writer.py
"""
Product + image writes.

Every operation keeps three things in step: the ``products`` row, its
``product_images`` rows and the files in the asset store.  Database work runs
in a single transaction; file writes are staged before commit and discarded
on rollback, file deletions happen only after a successful commit.

Main image rule: ``products.image`` is the URL of the surviving image with the
smallest id, or NULL when there is none.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from storefront.errors import NotFound, ValidationError
from storefront.extensions import db
from storefront.models import OrphanedFile, Product, ProductImage
from storefront.services.asset_store import AssetStore
from storefront.services.product_fields import ProductFields

logger = logging.getLogger(__name__)


@dataclass
class CreateResult:
    product_id: int
    images_uploaded: int


@dataclass
class UpdateResult:
    images_uploaded: int
    images_deleted: int


class StagedUploads:
    """Files written during one operation; removed again if it fails."""

    def __init__(self, store: AssetStore):
        self.store = store
        self.urls: list[str] = []

    def stage(self, files) -> list[str]:
        # validate everything first so a bad file late in the list
        # does not leave earlier ones behind
        formats = [self.store.inspect(fs) for fs in files]
        for fs, fmt in zip(files, formats):
            self.urls.append(self.store.save(fs, fmt))
        return list(self.urls)

    def __enter__(self) -> "StagedUploads":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None and self.urls:
            logger.info("Rolling back %d staged upload(s)", len(self.urls))
            self.store.discard(self.urls)
        return False


@contextmanager
def _transaction():
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


def _uploads(files) -> list:
    return [f for f in (files or []) if f is not None and getattr(f, "filename", None)]


def main_image_url(product_id: int) -> str | None:
    return db.session.execute(
        select(ProductImage.image_url)
        .where(ProductImage.product_id == product_id)
        .order_by(ProductImage.id.asc())
        .limit(1)
    ).scalar_one_or_none()


def _lock_product(product_id: int) -> Product | None:
    # serializes concurrent image-set edits of one product (no-op on SQLite)
    return db.session.execute(
        select(Product).where(Product.id == product_id).with_for_update()
    ).scalar_one_or_none()


def _attach_images(product_id: int, urls: list[str]) -> None:
    for url in urls:
        db.session.add(ProductImage(product_id=product_id, image_url=url))
    db.session.flush()


def _release_files(store: AssetStore, urls: list[str]) -> None:
    """Delete files whose rows are already committed away."""
    failures = store.remove(urls)
    if not failures:
        return
    try:
        for url, error in failures:
            db.session.add(OrphanedFile(image_url=url, error=error))
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Could not record %d orphaned file(s)", len(failures))


def _check_upload_count(files, limit: int | None) -> None:
    if limit is not None and len(files) > limit:
        raise ValidationError(f"Too many images (max {limit})")


def create_product(
    fields: ProductFields,
    image_files,
    store: AssetStore,
    max_images: int | None = None,
) -> CreateResult:
    files = _uploads(image_files)
    _check_upload_count(files, max_images)

    with StagedUploads(store) as staged, _transaction():
        urls = staged.stage(files)

        product = Product(**fields.as_columns())
        db.session.add(product)
        db.session.flush()

        _attach_images(product.id, urls)
        product.image = main_image_url(product.id)
        product_id = product.id

    logger.info("Created product %s with %d image(s)", product_id, len(urls))
    return CreateResult(product_id=product_id, images_uploaded=len(urls))


def update_product(
    product_id: int,
    fields: ProductFields,
    new_image_files,
    keep_image_urls,
    store: AssetStore,
    max_images: int | None = None,
) -> UpdateResult:
    files = _uploads(new_image_files)
    _check_upload_count(files, max_images)
    keep = set(keep_image_urls or [])

    with StagedUploads(store) as staged, _transaction():
        product = _lock_product(product_id)
        if product is None:
            raise NotFound("Product not found")

        fields.apply(product)

        current = db.session.execute(
            select(ProductImage)
            .where(ProductImage.product_id == product_id)
            .order_by(ProductImage.id.asc())
        ).scalars().all()
        removed = [img.image_url for img in current if img.image_url not in keep]
        if removed:
            db.session.execute(
                delete(ProductImage).where(
                    ProductImage.product_id == product_id,
                    ProductImage.image_url.in_(removed),
                )
            )

        urls = staged.stage(files)
        _attach_images(product_id, urls)
        product.image = main_image_url(product_id)

    _release_files(store, removed)
    logger.info(
        "Updated product %s: +%d / -%d image(s)", product_id, len(urls), len(removed)
    )
    return UpdateResult(images_uploaded=len(urls), images_deleted=len(removed))


def delete_product(product_id: int, store: AssetStore) -> int:
    with _transaction():
        urls = db.session.execute(
            select(ProductImage.image_url)
            .where(ProductImage.product_id == product_id)
            .order_by(ProductImage.id.asc())
        ).scalars().all()
        db.session.execute(delete(ProductImage).where(ProductImage.product_id == product_id))
        result = db.session.execute(delete(Product).where(Product.id == product_id))

    if result.rowcount == 0:
        logger.info("Delete of unknown product %s affected no rows", product_id)
    _release_files(store, urls)
    return len(urls)


def delete_product_image(product_id: int, image_url: str, store: AssetStore) -> None:
    with _transaction():
        product = _lock_product(product_id)
        result = db.session.execute(
            delete(ProductImage).where(
                ProductImage.product_id == product_id,
                ProductImage.image_url == image_url,
            )
        )
        if result.rowcount == 0:
            raise NotFound("Image not found")
        if product is not None:
            product.image = main_image_url(product_id)

    _release_files(store, [image_url])


def purge_orphaned_files(store: AssetStore) -> int:
    """Retry deletions recorded by earlier failures; returns how many cleared."""
    purged = 0
    for orphan in OrphanedFile.query.order_by(OrphanedFile.id.asc()).all():
        try:
            store.delete(orphan.image_url)
        except OSError as e:
            orphan.error = str(e)
            continue
        db.session.delete(orphan)
        purged += 1
    db.session.commit()
    return purged
