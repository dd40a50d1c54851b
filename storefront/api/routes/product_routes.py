from flask import Blueprint, jsonify, request, current_app
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from storefront.api.utils.payload import json_payload
from storefront.auth.guards import admin_required
from storefront.errors import InternalError, NotFound, ValidationError
from storefront.models import Product
from storefront.services import product_writer
from storefront.services.asset_store import AssetStore
from storefront.services.product_fields import ProductFields, parse_string_list, to_bool

api_products = Blueprint("api_products", __name__, url_prefix="/api/products")


# ========================= Helpers =========================

def _product_dict(product: Product) -> dict:
    return {
        "id": product.id,
        "name": product.name,
        "sku": product.sku,
        "brand": product.brand,
        "category": product.category,
        "description": product.description,
        "long_description": product.long_description,
        "specifications": list(product.specifications or []),
        "features": list(product.features or []),
        "price": float(product.price) if product.price is not None else None,
        "stock_count": product.stock_count,
        "in_stock": bool(product.in_stock),
        "rating": product.rating,
        "featured": bool(product.featured),
        "images": product.image_urls,
        # single-image consumers
        "image": product.image,
        "created_at": product.created_at.isoformat() if product.created_at else None,
        "updated_at": product.updated_at.isoformat() if product.updated_at else None,
    }


def _form_payload():
    return json_payload(allow_form=True)


def _keep_image_urls(data) -> list[str]:
    # authoritative: any current image not listed here is deleted
    return parse_string_list(data.get("existingImages"), "existingImages")


def _max_images() -> int:
    return current_app.config.get("MAX_IMAGES_PER_REQUEST", 10)


# ========================= Endpoints =========================

@api_products.get("")
def get_products():
    query = Product.query.options(selectinload(Product.images))

    if request.args.get("featured") is not None:
        query = query.filter(Product.featured == to_bool(request.args.get("featured"), True))
    category = (request.args.get("category") or "").strip()
    if category:
        query = query.filter(Product.category == category)

    items = query.order_by(Product.id.desc()).all()
    return jsonify([_product_dict(p) for p in items]), 200


@api_products.get("/<int:product_id>")
def get_product(product_id: int):
    p = (
        Product.query.options(selectinload(Product.images))
        .filter(Product.id == product_id)
        .first()
    )
    if p is None:
        raise NotFound("Product not found")
    return jsonify(_product_dict(p)), 200


@api_products.post("")
@admin_required
def add_product():
    fields = ProductFields.from_form(_form_payload())
    files = request.files.getlist("images")

    try:
        result = product_writer.create_product(
            fields, files, AssetStore.from_app(), max_images=_max_images()
        )
    except (SQLAlchemyError, OSError) as e:
        raise InternalError("Failed to add product", str(e))

    return jsonify({
        "id": result.product_id,
        "message": "Product added successfully",
        "imagesUploaded": result.images_uploaded,
    }), 201


@api_products.put("/<int:product_id>")
@admin_required
def update_product(product_id: int):
    data = _form_payload()
    fields = ProductFields.from_form(data)
    keep = _keep_image_urls(data)
    files = request.files.getlist("images")

    try:
        result = product_writer.update_product(
            product_id, fields, files, keep, AssetStore.from_app(), max_images=_max_images()
        )
    except (SQLAlchemyError, OSError) as e:
        raise InternalError("Failed to update product", str(e))

    return jsonify({
        "message": "Product updated successfully",
        "imagesUploaded": result.images_uploaded,
        "imagesDeleted": result.images_deleted,
    }), 200


@api_products.delete("/<int:product_id>")
@admin_required
def delete_product(product_id: int):
    try:
        deleted = product_writer.delete_product(product_id, AssetStore.from_app())
    except SQLAlchemyError as e:
        raise InternalError("Failed to delete product", str(e))

    return jsonify({
        "message": "Product and all associated images deleted successfully",
        "imagesDeleted": deleted,
    }), 200


@api_products.delete("/<int:product_id>/images")
@admin_required
def delete_product_image(product_id: int):
    data = json_payload(allow_form=True)
    image_url = data.get("imageUrl")
    if not isinstance(image_url, str) or not image_url.strip():
        raise ValidationError("Image URL is required")

    try:
        product_writer.delete_product_image(product_id, image_url.strip(), AssetStore.from_app())
    except SQLAlchemyError as e:
        raise InternalError("Failed to delete image", str(e))

    return jsonify({"message": "Image deleted successfully"}), 200

