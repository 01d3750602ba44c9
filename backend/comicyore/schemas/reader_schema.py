"""
schemas/reader_schema.py — Query-string schemas for the browser-facing routes.
"""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, fields, pre_load, validate


class ReaderQuerySchema(Schema):
    """GET /read/<owner>/<repo>?page=&slug="""

    class Meta:
        unknown = EXCLUDE

    page = fields.Int(
        load_default=1,
        strict=False,
        validate=validate.Range(min=1, error="page must be a positive integer."),
    )
    slug = fields.Str(load_default=None, validate=validate.Length(min=1, max=255))

    @pre_load
    def drop_blank(self, data, **kwargs):
        # "?slug=" and "?page=" mean "use the default".
        return {k: v for k, v in data.items() if v != ""}


class AuthStartQuerySchema(Schema):
    """GET /auth/start?returnTo="""

    class Meta:
        unknown = EXCLUDE

    return_to = fields.Str(data_key="returnTo", load_default=None)
