"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from transfer_monitor.adapters.chain_client import Web3ChainConnector
from transfer_monitor.config import Settings
from transfer_monitor.services.sessions import SessionRegistry
from transfer_monitor.services.transfers import TransferService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    session_registry: SessionRegistry
    transfer_service: TransferService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    session_registry = SessionRegistry(
        retention_seconds=resolved_settings.session_retention_seconds
    )
    transfer_service = TransferService(
        connector=Web3ChainConnector(
            request_timeout=resolved_settings.rpc_timeout_seconds
        ),
        registry=session_registry,
        poll_interval_seconds=resolved_settings.poll_interval_seconds,
        explorer_tx_url=resolved_settings.explorer_tx_url,
    )

    async def close_resources() -> None:
        await transfer_service.shutdown()

    return AppContainer(
        settings=resolved_settings,
        session_registry=session_registry,
        transfer_service=transfer_service,
        close_resources=close_resources,
    )
