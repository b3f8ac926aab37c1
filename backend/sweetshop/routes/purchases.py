# Overview: Flask API routes for purchase history; read-only views of the ledger.

from flask import Blueprint, g

from ..services import purchase_service
from ..decorators import require_auth, require_admin


purchases_bp = Blueprint("purchases", __name__, url_prefix="/api/purchases")


@purchases_bp.get("/history")
@require_auth
def history_route():
    """The caller's own purchases, newest first."""
    return purchase_service.get_user_purchases(g.current_user.id), 200


@purchases_bp.get("/all")
@require_auth
@require_admin
def all_purchases_route():
    """Every purchase with the buyer's username, newest first. Admin only."""
    return purchase_service.get_all_purchases(), 200
