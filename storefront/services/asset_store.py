# storefront/services/asset_store.py
from __future__ import annotations

import logging
import os
import secrets
import time

from flask import current_app
from PIL import Image, UnidentifiedImageError
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from storefront.errors import ValidationError

logger = logging.getLogger(__name__)


class AssetStore:
    """
    Flat directory of uploaded product images.

    Files are addressed by public URLs of the form ``/uploads/<name>``; names
    are generated (``<field>-<epoch ms>-<random>.<ext>``) so the namespace
    never needs locking.
    """

    def __init__(
        self,
        root: str,
        url_prefix: str = "/uploads",
        max_size: int = 10 * 1024 * 1024,
        field_name: str = "images",
    ):
        self.root = os.path.abspath(root)
        self.url_prefix = "/" + url_prefix.strip("/")
        self.max_size = max_size
        self.field_name = field_name

    @classmethod
    def from_app(cls, app=None) -> "AssetStore":
        cfg = (app or current_app).config
        return cls(
            cfg["UPLOAD_FOLDER"],
            url_prefix=cfg.get("UPLOAD_URL_PREFIX", "/uploads"),
            max_size=cfg.get("MAX_IMAGE_SIZE", 10 * 1024 * 1024),
        )

    # ---------------------------------------------------------------- names

    def generate_name(self, original_filename: str | None, fmt: str | None = None) -> str:
        ext = os.path.splitext(secure_filename(original_filename or ""))[1].lower()
        if not ext and fmt:
            ext = "." + fmt.lower().replace("jpeg", "jpg")
        suffix = f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}"
        return f"{self.field_name}-{suffix}{ext}"

    def url_for_name(self, name: str) -> str:
        return f"{self.url_prefix}/{name}"

    def path_for(self, url: str | None) -> str | None:
        """Map a public URL onto the store; None for anything outside it."""
        if not url or not url.startswith(self.url_prefix + "/"):
            return None
        name = url[len(self.url_prefix) + 1:]
        if not name or name != os.path.basename(name) or name in (".", ".."):
            return None
        return os.path.join(self.root, name)

    # ---------------------------------------------------------------- writes

    def _measure(self, fs: FileStorage) -> int:
        stream = fs.stream
        stream.seek(0, os.SEEK_END)
        size = stream.tell()
        stream.seek(0)
        return size

    def inspect(self, fs: FileStorage) -> str:
        """Check an upload is a real image within limits; return its format."""
        label = fs.filename or "upload"
        if not (fs.mimetype or "").lower().startswith("image/"):
            raise ValidationError("Only image files are allowed!", f"{label}: {fs.mimetype}")
        if self._measure(fs) > self.max_size:
            raise ValidationError("Image file too large", f"{label} exceeds {self.max_size} bytes")
        try:
            with Image.open(fs.stream) as img:
                fmt = img.format
                img.verify()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError) as e:
            raise ValidationError("Only image files are allowed!", f"{label}: {e}")
        finally:
            fs.stream.seek(0)
        return fmt or ""

    def save(self, fs: FileStorage, fmt: str | None = None) -> str:
        """
        Write an upload under a fresh name and return its public URL.
        ``fmt`` is the result of an earlier ``inspect``; without it the upload is inspected here.
        """
        if fmt is None:
            fmt = self.inspect(fs)
        os.makedirs(self.root, exist_ok=True)
        name = self.generate_name(fs.filename, fmt)
        fs.save(os.path.join(self.root, name))
        logger.debug("Stored upload %s as %s", fs.filename, name)
        return self.url_for_name(name)

    def delete(self, url: str) -> bool:
        """Delete the file behind ``url``; False when there was nothing to delete."""
        path = self.path_for(url)
        if path is None:
            return False
        try:
            os.remove(path)
        except FileNotFoundError:
            return False
        return True

    def discard(self, urls) -> None:
        """Undo staged writes after an aborted transaction."""
        for url in urls:
            try:
                self.delete(url)
            except OSError:
                logger.exception("Could not discard staged upload %s", url)

    def remove(self, urls) -> list[tuple[str, str]]:
        """Best-effort delete after commit; returns (url, error) for failures."""
        failures = []
        for url in urls:
            try:
                if self.delete(url):
                    logger.info("Deleted image file %s", url)
            except OSError as e:
                logger.warning("Error deleting image %s: %s", url, e)
                failures.append((url, str(e)))
        return failures
