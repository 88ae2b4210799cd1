# -*- coding: utf-8 -*-
# focusflow/schemas/task.py
from marshmallow import Schema, fields, validate, EXCLUDE

from focusflow.models.task import PRIORITIES


class TaskCreateSchema(Schema):
    user_id = fields.Str(required=True, data_key="userId",
                         validate=validate.Length(min=1))
    text = fields.Str(required=True, validate=validate.Length(min=1))
    priority = fields.Str(load_default="Medium", allow_none=True,
                          validate=validate.OneOf(PRIORITIES))

    class Meta:
        unknown = EXCLUDE


class TaskUpdateSchema(Schema):
    id = fields.Integer(required=True)
    completed = fields.Boolean(load_default=None, allow_none=True)
    completed_at = fields.DateTime(load_default=None, allow_none=True)

    class Meta:
        unknown = EXCLUDE
