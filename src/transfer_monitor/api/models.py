"""Pydantic models for the HTTP API."""

from pydantic import BaseModel, ConfigDict, Field


class TransferPayload(BaseModel):
    """Transfer form submitted by the dashboard.

    Every field is optional; absent fields fall back to process defaults.
    """

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    rpc_url: str | None = Field(default=None, alias="rpcUrl")
    private_key: str | None = Field(default=None, alias="privateKey")
    token_address: str | None = Field(default=None, alias="tokenAddress")
    recipient: str | None = None
    amount: str | None = None
    gas_price_gwei: str | None = Field(default=None, alias="gasPriceGwei")
    gas_limit: str | None = Field(default=None, alias="gasLimit")


class SessionCreated(BaseModel):
    """Response to a transfer submission."""

    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId")
