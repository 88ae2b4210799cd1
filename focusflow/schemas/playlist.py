# -*- coding: utf-8 -*-
# focusflow/schemas/playlist.py
from marshmallow import Schema, fields, validate, EXCLUDE

from focusflow.models.playlist import PLATFORMS


class PlaylistCreateSchema(Schema):
    user_id = fields.Str(required=True, data_key="userId",
                         validate=validate.Length(min=1))
    name = fields.Str(required=True, validate=validate.Length(min=1, max=255))
    url = fields.Str(required=True, validate=validate.Length(min=1))
    # Detected from the URL when absent
    platform = fields.Str(load_default=None, allow_none=True,
                          validate=validate.OneOf(PLATFORMS))

    class Meta:
        unknown = EXCLUDE
