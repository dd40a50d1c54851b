from datetime import datetime
from storefront.extensions import db


class Product(db.Model):
    __tablename__ = "products"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    sku = db.Column(db.String(100), nullable=True)
    brand = db.Column(db.String(150), nullable=True)
    category = db.Column(db.String(150), nullable=True, index=True)
    description = db.Column(db.Text, nullable=True)
    long_description = db.Column(db.Text, nullable=True)

    # ordered lists of strings
    specifications = db.Column(db.JSON, nullable=False, default=list)
    features = db.Column(db.JSON, nullable=False, default=list)

    price = db.Column(db.Numeric(12, 2), nullable=True)
    stock_count = db.Column(db.Integer, nullable=False, default=0)
    in_stock = db.Column(db.Boolean, nullable=False, default=True)
    rating = db.Column(db.Float, nullable=False, default=0)
    featured = db.Column(db.Boolean, nullable=False, default=False, index=True)

    # URL of the lowest-id ProductImage, kept for single-image consumers
    image = db.Column(db.String(512), nullable=True)

    images = db.relationship(
        "ProductImage",
        back_populates="product",
        order_by="ProductImage.id",
        lazy=True,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    @property
    def image_urls(self) -> list[str]:
        return [img.image_url for img in self.images]

    def __repr__(self) -> str:
        return f"<Product {self.name}>"
