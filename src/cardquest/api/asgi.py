"""ASGI entrypoint for the cardquest API."""

from cardquest.api.app import create_app
from cardquest.containers import build_container

app = create_app(build_container())
