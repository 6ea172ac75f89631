"""ASGI entrypoint for the estimation server."""

from macrocam.api.app import create_app
from macrocam.containers import build_container

app = create_app(build_container())
