"""
schemas/refresh_schema.py — marshmallow schema for POST /api/refresh.

Only shape rules live here. Whether owner/repo is registered is a database
question answered in refresh_service.
"""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, fields, pre_load, validate


class RefreshRequestSchema(Schema):

    class Meta:
        unknown = EXCLUDE

    owner = fields.Str(required=True, validate=validate.Length(min=1, max=255))
    repo = fields.Str(required=True, validate=validate.Length(min=1, max=255))

    # Overrides the slug declared by the manifest.
    slug = fields.Str(
        load_default=None,
        allow_none=True,
        validate=validate.Length(min=1, max=255),
    )

    @pre_load
    def strip_strings(self, data, **kwargs):
        if not isinstance(data, dict):
            return data
        cleaned = dict(data)
        for key in ("owner", "repo", "slug"):
            if isinstance(cleaned.get(key), str):
                cleaned[key] = cleaned[key].strip()
        # A blank slug means "use the manifest's slug".
        if cleaned.get("slug") == "":
            cleaned["slug"] = None
        return cleaned
