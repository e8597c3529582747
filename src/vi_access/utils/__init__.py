"""Small shared helpers."""

from vi_access.utils.json_serializers import json_serializer

__all__ = ["json_serializer"]
