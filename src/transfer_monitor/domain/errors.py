"""Error types raised while running a transfer attempt."""


class TransferError(Exception):
    """Terminal failure of a transfer attempt with a user-facing message."""


class ConfigurationMissing(TransferError):
    """One or more mandatory configuration fields are absent."""

    def __init__(self, missing: list[str]) -> None:
        super().__init__(f"Missing required configuration: {', '.join(missing)}")
        self.missing = missing


class ConnectionFailure(TransferError):
    """The configured RPC endpoint cannot be reached."""


class CredentialInvalid(TransferError):
    """The signing key is malformed."""


class ConversionFailure(TransferError):
    """An amount or gas price cannot be expressed in base units."""


class BroadcastFailure(TransferError):
    """The network rejected the signed transfer."""


class MonitoringFailure(TransferError):
    """An unexpected error interrupted the polling loop."""


class ChainClientError(Exception):
    """A chain RPC call failed."""


class EstimationFailure(ChainClientError):
    """Gas estimation for a call failed."""


class CallReverted(ChainClientError):
    """A simulated call reverted, optionally with encoded error data."""

    def __init__(self, message: str | None = None, data: str | None = None) -> None:
        super().__init__(message or "call reverted")
        self.message = message
        self.data = data


class SessionClosedError(RuntimeError):
    """An event was appended to a session that already completed."""
