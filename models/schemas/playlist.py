from marshmallow import fields, validate

from models.schemas.common import BaseSchema, not_blank


class PlaylistCreateSchema(BaseSchema):
    name = fields.String(required=True, validate=[not_blank, validate.Length(max=255)])
    description = fields.String(required=True, validate=not_blank)


class PlaylistUpdateSchema(BaseSchema):
    name = fields.String(validate=[not_blank, validate.Length(max=255)])
    description = fields.String(validate=not_blank)
