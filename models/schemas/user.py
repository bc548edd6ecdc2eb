from marshmallow import fields, pre_load, validates, ValidationError, validate

from models.schemas.common import BaseSchema, normalize_handle, not_blank

HANDLE_PATTERN = r"^[a-z0-9_.]{3,64}$"


def _validate_password(value):
    if len(value) < 8:
        raise ValidationError("Password must be at least 8 characters long.")


class UserCreateSchema(BaseSchema):
    fullname = fields.String(required=True, validate=not_blank)
    email = fields.Email(required=True)
    username = fields.String(
        required=True,
        validate=validate.Regexp(HANDLE_PATTERN, error="3-64 characters: letters, digits, '_' or '.'"),
    )
    password = fields.String(required=True, load_only=True)
    avatar = fields.Url(allow_none=True)
    cover = fields.Url(allow_none=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict):
            data = dict(data)
            for key in ("email", "username"):
                if key in data:
                    data[key] = normalize_handle(data[key])
        return data

    @validates("password")
    def validate_password(self, value, **kwargs):
        _validate_password(value)


class UserLoginSchema(BaseSchema):
    email = fields.String(load_default=None)
    username = fields.String(load_default=None)
    password = fields.String(load_default=None, load_only=True)

    @pre_load
    def accept_handle(self, data, **kwargs):
        # "handle" is accepted as an alias of "username"
        if isinstance(data, dict) and "handle" in data and "username" not in data:
            data = dict(data)
            data["username"] = data.pop("handle")
        return data


class UserUpdateSchema(BaseSchema):
    fullname = fields.String(validate=not_blank)
    email = fields.Email()
    avatar = fields.Url(allow_none=True)
    cover = fields.Url(allow_none=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data = dict(data)
            data["email"] = normalize_handle(data["email"])
        return data


class PasswordChangeSchema(BaseSchema):
    old_password = fields.String(required=True, data_key="oldPassword", load_only=True)
    new_password = fields.String(required=True, data_key="newPassword", load_only=True)

    @validates("new_password")
    def validate_new_password(self, value, **kwargs):
        _validate_password(value)

