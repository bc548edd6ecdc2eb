from marshmallow import fields

from models.schemas.common import BaseSchema, not_blank, required_id


class CommentCreateSchema(BaseSchema):
    video_id = required_id("videoId")
    content = fields.String(required=True, validate=not_blank)


class CommentUpdateSchema(BaseSchema):
    content = fields.String(required=True, validate=not_blank)
