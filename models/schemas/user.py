from marshmallow import EXCLUDE, Schema, fields, pre_load, validate


def _norm_name(v):
    return v.strip() if isinstance(v, str) else v


class CredentialsSchema(Schema):
    """Body of POST /register and POST /login."""

    class Meta:
        unknown = EXCLUDE

    name = fields.String(required=True, validate=validate.Length(min=1, max=255))
    password = fields.String(required=True, load_only=True, validate=validate.Length(min=1))

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "name" in data:
            data = dict(data)
            data["name"] = _norm_name(data["name"])
        return data


class UserOutSchema(Schema):
    id = fields.Integer()
    name = fields.String()


class TokenPairOutSchema(Schema):
    accesstoken = fields.String(attribute="access")
    refreshtoken = fields.String(attribute="refresh")
