# -*- coding: utf-8 -*-
# focusflow/models/playlist.py
from datetime import datetime

from focusflow.database import db

PLATFORMS = ("youtube", "spotify", "unknown")

# Substring match against the URL, first hit wins
PLATFORM_DOMAINS = (
    ("youtube.com", "youtube"),
    ("youtu.be", "youtube"),
    ("spotify.com", "spotify"),
)


def detect_platform(url: str) -> str:
    """Infer the playlist platform from its URL."""
    for domain, platform in PLATFORM_DOMAINS:
        if domain in url:
            return platform
    return "unknown"


class CustomPlaylistEntry(db.Model):
    """A user's own focus playlist. Premium gating is enforced by the caller."""
    __tablename__ = 'custom_playlists'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    url = db.Column(db.Text, nullable=False)
    platform = db.Column(db.String(16), nullable=False, default="unknown")
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "url": self.url,
            "platform": self.platform,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
