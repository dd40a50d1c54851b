# storefront/models/orphaned_file.py
from datetime import datetime
from storefront.extensions import db


class OrphanedFile(db.Model):
    """Uploaded file whose row is gone but whose deletion failed."""

    __tablename__ = "orphaned_files"

    id = db.Column(db.Integer, primary_key=True)
    image_url = db.Column(db.String(512), nullable=False)
    error = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<OrphanedFile {self.image_url}>"
