from flask import Blueprint, jsonify, request

from ...database.repositories.errors import NotFoundError
from ...database.repositories.products_repo import ProductsRepo
from ...database.repositories.queries import ColorSearchQuery, ProductSearchQuery
from ...utils.api import degrade_to, get_db, parse_args, parse_body
from .schemas import (
    BulkRatesIn,
    ColorIn,
    ColorPatch,
    ColorSearchArgs,
    ProductIn,
    ProductPatch,
    ProductSearchArgs,
    RateIn,
    VariantIn,
    VariantPatch,
)

bp = Blueprint("catalog", __name__)


def _repo() -> ProductsRepo:
    return ProductsRepo(get_db())


# ---------- Products ----------

@bp.get("/products")
@degrade_to(list)
def list_products():
    return jsonify([p.to_dict() for p in _repo().list_products()])


@bp.post("/products")
def create_product():
    body = parse_body(ProductIn)
    return jsonify(_repo().create(body.company, body.productName).to_dict()), 201


@bp.get("/products/<product_id>")
def get_product(product_id: str):
    return jsonify(_repo().require(product_id).to_dict())


@bp.route("/products/<product_id>", methods=["PUT", "PATCH"])
def update_product(product_id: str):
    body = parse_body(ProductPatch)
    product = _repo().update(product_id, company=body.company, product_name=body.productName)
    return jsonify(product.to_dict())


@bp.delete("/products/<product_id>")
def delete_product(product_id: str):
    _repo().delete(product_id)
    return jsonify({"success": True})


# ---------- Variants ----------

@bp.get("/variants")
@degrade_to(list)
def list_variants():
    return jsonify(_repo().list_variants(request.args.get("productId") or None))


@bp.post("/variants")
def create_variant():
    body = parse_body(VariantIn)
    return jsonify(_repo().create_variant(body.productId, body.packingSize, body.rate).to_dict()), 201


@bp.get("/variants/<variant_id>")
def get_variant(variant_id: str):
    return jsonify(_repo().require_variant(variant_id).to_dict())


@bp.route("/variants/<variant_id>", methods=["PUT", "PATCH"])
def update_variant(variant_id: str):
    body = parse_body(VariantPatch)
    variant = _repo().update_variant(
        variant_id, product_id=body.productId, packing_size=body.packingSize, rate=body.rate,
    )
    return jsonify(variant.to_dict())


@bp.patch("/variants/<variant_id>/rate")
def update_variant_rate(variant_id: str):
    body = parse_body(RateIn)
    return jsonify(_repo().update_variant_rate(variant_id, body.rate).to_dict())


@bp.delete("/variants/<variant_id>")
def delete_variant(variant_id: str):
    _repo().delete_variant(variant_id)
    return jsonify({"success": True})


@bp.post("/bulk/update-rates")
def bulk_update_rates():
    body = parse_body(BulkRatesIn)
    results = _repo().bulk_update_rates([u.model_dump() for u in body.updates])
    return jsonify({"results": results})


# ---------- Colors ----------

@bp.get("/colors")
@degrade_to(list)
def list_colors():
    return jsonify(_repo().list_colors(request.args.get("variantId") or None))


@bp.get("/colors/<color_id>")
def get_color(color_id: str):
    color = _repo().get_color_detail(color_id)
    if color is None:
        raise NotFoundError("Color not found")
    return jsonify(color)


@bp.post("/colors")
def create_color():
    body = parse_body(ColorIn)
    repo = _repo()
    color = repo.create_color(body.variantId, body.colorName, body.colorCode, body.stockQuantity)
    return jsonify(repo.get_color_detail(color.id)), 201


@bp.route("/colors/<color_id>", methods=["PUT", "PATCH"])
def update_color(color_id: str):
    body = parse_body(ColorPatch)
    repo = _repo()
    repo.update_color(color_id, variant_id=body.variantId, color_name=body.colorName,
                      color_code=body.colorCode)
    return jsonify(repo.get_color_detail(color_id))


@bp.delete("/colors/<color_id>")
def delete_color(color_id: str):
    _repo().delete_color(color_id)
    return jsonify({"success": True})


# ---------- Search ----------

@bp.get("/search/products")
@degrade_to(list)
def search_products():
    args = parse_args(ProductSearchArgs)
    found = _repo().search_products(ProductSearchQuery(query=args.query, company=args.company))
    return jsonify([p.to_dict() for p in found])


@bp.get("/search/colors")
@degrade_to(list)
def search_colors():
    args = parse_args(ColorSearchArgs)
    q = ColorSearchQuery(query=args.query, company=args.company, product=args.product,
                         variant=args.variant)
    return jsonify(_repo().search_colors(q))
