"""Command-line entrypoint that serves the API with uvicorn."""

import uvicorn

from transfer_monitor.api.app import create_app
from transfer_monitor.containers import build_container


def main() -> None:
    """Run the transfer monitor on the configured host and port."""
    container = build_container()
    app = create_app(container)
    print(f"Transfer Monitor listening on http://localhost:{container.settings.port}")
    uvicorn.run(
        app,
        host=container.settings.host,
        port=container.settings.port,
        log_level=container.settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
