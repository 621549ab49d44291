"""Seed image building, upload and read-back."""

from cidata.seed.builder import build
from cidata.seed.packager import package, render_meta_data, render_user_data
from cidata.seed.reader import fetch_and_parse, parse_image
from cidata.seed.uploader import upload

__all__ = [
    "build",
    "package",
    "render_meta_data",
    "render_user_data",
    "fetch_and_parse",
    "parse_image",
    "upload",
]
