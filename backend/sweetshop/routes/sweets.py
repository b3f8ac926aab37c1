# Overview: Flask API routes for sweets operations; parses input and returns JSON responses.

# backend/sweetshop/routes/sweets.py
"""
Sweet catalog routes.

SECURITY: All routes require authentication.
- Listing, search, detail and purchase are open to any authenticated user
- Create, update, delete and restock require the admin role
"""
from flask import Blueprint, request, g

from ..services import sweets_service
from ..models import Sweet
from ..errors import NotFound
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_sweet,
    validate_purchase_quantity,
    validate_restock_quantity,
    parse_search_params,
    parse_id,
)
from ..decorators import require_auth, require_admin

SWEET_POLICY = ModelValidationPolicy(
    writable_fields={"name", "category", "price", "quantity", "image_url", "description"},
    required_on_create={"name", "category", "price"},
    clearable_fields={"image_url", "description"},
)

SWEET_DELETED = "Sweet deleted successfully"
PURCHASE_SUCCESS = "Purchase successful"
RESTOCK_SUCCESS = "Restock successful"

sweets_bp = Blueprint("sweets", __name__, url_prefix="/api/sweets")


@sweets_bp.get("")
@require_auth
def list_sweets_route():
    """All sweets, newest first."""
    return sweets_service.list_sweets(), 200


@sweets_bp.get("/search")
@require_auth
def search_sweets_route():
    """
    Search sweets.

    Query params (all optional, AND-combined):
    - name: substring of the sweet name
    - category: exact category
    - minPrice / maxPrice: inclusive price bounds
    """
    params = parse_search_params(request.args)
    return sweets_service.search_sweets(**params), 200


@sweets_bp.get("/<sweet_id>")
@require_auth
def get_sweet_route(sweet_id):
    sweet = sweets_service.get_sweet(parse_id(sweet_id))
    if sweet is None:
        raise NotFound(sweets_service.SWEET_NOT_FOUND)
    return sweet, 200


@sweets_bp.post("")
@require_auth
@require_admin
def create_sweet_route():
    """Create a new sweet. Admin only."""
    payload = request.get_json(silent=True) or {}

    patch = validate_payload(model=Sweet, payload=payload, policy=SWEET_POLICY, partial=False)
    enforce_rules_sweet(patch)

    return sweets_service.create_sweet(patch=patch), 201


@sweets_bp.put("/<sweet_id>")
@require_auth
@require_admin
def update_sweet_route(sweet_id):
    """Partially update a sweet. Admin only."""
    sweet_id = parse_id(sweet_id)
    payload = request.get_json(silent=True) or {}

    patch = validate_payload(model=Sweet, payload=payload, policy=SWEET_POLICY, partial=True)
    enforce_rules_sweet(patch)

    return sweets_service.update_sweet(sweet_id=sweet_id, patch=patch), 200


@sweets_bp.delete("/<sweet_id>")
@require_auth
@require_admin
def delete_sweet_route(sweet_id):
    """Delete a sweet. Admin only. Purchase history is kept."""
    sweets_service.delete_sweet(sweet_id=parse_id(sweet_id))
    return {"message": SWEET_DELETED}, 200


@sweets_bp.post("/<sweet_id>/purchase")
@require_auth
def purchase_sweet_route(sweet_id):
    """
    Buy a quantity of a sweet as the current user.

    Request body: {"quantity": number >= 0.01} (optional, default 1)
    """
    sweet_id = parse_id(sweet_id)
    quantity = validate_purchase_quantity(request.get_json(silent=True))

    sweet = sweets_service.purchase_sweet(
        sweet_id=sweet_id,
        quantity=quantity,
        user_id=g.current_user.id,
    )
    return {"message": PURCHASE_SUCCESS, "sweet": sweet}, 200


@sweets_bp.post("/<sweet_id>/restock")
@require_auth
@require_admin
def restock_sweet_route(sweet_id):
    """
    Add stock to a sweet. Admin only.

    Request body: {"quantity": number > 0}
    """
    sweet_id = parse_id(sweet_id)
    quantity = validate_restock_quantity(request.get_json(silent=True))

    sweet = sweets_service.restock_sweet(sweet_id=sweet_id, quantity=quantity)
    return {"message": RESTOCK_SUCCESS, "sweet": sweet}, 200
