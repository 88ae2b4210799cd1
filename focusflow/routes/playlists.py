# -*- coding: utf-8 -*-
"""
Custom playlist CRUD. Creating a playlist is a premium feature.
"""
from flask import Blueprint, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from focusflow.database import db
from focusflow.services.structured_logging import get_logger
from focusflow.models.playlist import CustomPlaylistEntry, detect_platform
from focusflow.schemas.playlist import PlaylistCreateSchema
from focusflow.services.entitlements import Feature, require_feature
from focusflow.services.request_context import set_user_context

logger = get_logger('focusflow.playlists')

playlists_bp = Blueprint("playlists", __name__)


def _store_error(e: SQLAlchemyError):
    db.session.rollback()
    logger.error(f"Playlist store error: {e}")
    return jsonify({"error": str(getattr(e, "orig", None) or e)}), 500


@playlists_bp.route("/playlists", methods=["GET"])
def list_playlists():
    user_id = (request.args.get("userId") or "").strip()
    if not user_id:
        return jsonify({"error": "User ID required"}), 400

    try:
        playlists = (CustomPlaylistEntry.query
                     .filter_by(user_id=user_id)
                     .order_by(CustomPlaylistEntry.created_at.desc(),
                               CustomPlaylistEntry.id.desc())
                     .all())
    except SQLAlchemyError as e:
        return _store_error(e)

    return jsonify({"playlists": [p.to_dict() for p in playlists]})


@playlists_bp.route("/playlists", methods=["POST"])
def create_playlist():
    data = PlaylistCreateSchema().load(request.get_json(silent=True) or {})
    user_id = data["user_id"]
    set_user_context(user_id)

    require_feature(user_id, Feature.CUSTOM_PLAYLISTS)

    playlist = CustomPlaylistEntry(
        user_id=user_id,
        name=data["name"],
        url=data["url"],
        platform=data.get("platform") or detect_platform(data["url"]),
    )
    try:
        db.session.add(playlist)
        db.session.commit()
    except SQLAlchemyError as e:
        return _store_error(e)

    logger.info("Created custom playlist", playlist_id=playlist.id, platform=playlist.platform)
    return jsonify({"playlist": playlist.to_dict()})


@playlists_bp.route("/playlists", methods=["DELETE"])
def delete_playlist():
    playlist_id = request.args.get("id", type=int)
    if playlist_id is None:
        return jsonify({"error": "Playlist ID required"}), 400

    try:
        CustomPlaylistEntry.query.filter_by(id=playlist_id).delete()
        db.session.commit()
    except SQLAlchemyError as e:
        return _store_error(e)

    return jsonify({"success": True})
