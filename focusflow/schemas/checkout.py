# -*- coding: utf-8 -*-
# focusflow/schemas/checkout.py
from marshmallow import Schema, fields, validate, EXCLUDE


class CheckoutRequestSchema(Schema):
    user_id = fields.Str(required=True, data_key="userId",
                         validate=validate.Length(min=1))
    email = fields.Email(required=True, validate=validate.Length(min=1))

    class Meta:
        unknown = EXCLUDE
