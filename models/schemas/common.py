from marshmallow import EXCLUDE, Schema, ValidationError, fields


def normalize_handle(value):
    return value.strip().lower() if isinstance(value, str) else value


def not_blank(value: str) -> None:
    if not value or not value.strip():
        raise ValidationError("Must not be blank.")


class BaseSchema(Schema):
    class Meta:
        # clients often send the whole form back; ignore what we don't use
        unknown = EXCLUDE


def required_id(data_key: str):
    """Required id field read from a camelCase key (videoId, channelId, ...)."""
    return fields.String(required=True, data_key=data_key, validate=not_blank)
