from marshmallow import fields, validate

from models.schemas.common import BaseSchema, not_blank


class VideoCreateSchema(BaseSchema):
    title = fields.String(required=True, validate=[not_blank, validate.Length(max=255)])
    description = fields.String(required=True, validate=not_blank)
    # media references produced by the external media store
    video_file = fields.Url(required=True, data_key="videoFile")
    thumbnail = fields.Url(required=True)
    duration = fields.Float(allow_none=True, validate=validate.Range(min=0))
    is_published = fields.Boolean(load_default=True, data_key="isPublished")


class VideoUpdateSchema(BaseSchema):
    title = fields.String(validate=[not_blank, validate.Length(max=255)])
    description = fields.String(validate=not_blank)
    thumbnail = fields.Url()


class PublishSchema(BaseSchema):
    is_published = fields.Boolean(load_default=None, data_key="isPublished")
