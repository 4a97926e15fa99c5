"""ASGI entrypoint for the transfer monitor API."""

from transfer_monitor.api.app import create_app
from transfer_monitor.containers import build_container

app = create_app(build_container())
