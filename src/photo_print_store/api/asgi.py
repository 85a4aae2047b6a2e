"""ASGI entrypoint for the photo print store API."""

from photo_print_store.api.app import create_app
from photo_print_store.containers import build_container

app = create_app(build_container())
