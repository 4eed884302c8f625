"""ASGI entrypoint for the try-on API."""

from tryon_studio.api.app import create_app
from tryon_studio.containers import build_container

app = create_app(build_container())
