# -*- coding: utf-8 -*-
from flask import Blueprint, jsonify, request

from focusflow.services.entitlements import resolve_entitlements

subscription_bp = Blueprint("subscription", __name__)


@subscription_bp.route("/subscription/status", methods=["GET"])
def subscription_status():
    """Server-side entitlement for the dashboard; the browser's cached flag is only a hint."""
    user_id = (request.args.get("userId") or "").strip()
    if not user_id:
        return jsonify({"error": "User ID required"}), 400

    return jsonify(resolve_entitlements(user_id).to_dict()), 200
