from marshmallow import fields

from models.schemas.common import BaseSchema, not_blank


class TweetSchema(BaseSchema):
    content = fields.String(required=True, validate=not_blank)
