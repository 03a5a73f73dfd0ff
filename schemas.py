from __future__ import annotations

import typing

from pydantic import BaseModel, ConfigDict, Field, field_validator

Record = typing.Dict[str, typing.Any]

# Column names used by the spreadsheet provider
REF_ID = "Ref ID"
CONSIGNMENT_ID = "ConsignmentID"
CONTAINER_TRIP_ID = "ContainerTripID"
ENTITY_ID = "Entity ID"
SHEET = "Sheet"

SHEET_ORDERS = "Orders"
SHEET_CONTAINERS = "Containers"
SHEET_CONSIGNMENTS = "Consignments"


class ProviderPayload(BaseModel):
    """
    Body returned by the data provider for a shipment lookup.

    Orders and log entries stay plain mappings so they can be returned to the
    client exactly as the provider sent them. A missing or null list is read as
    empty; anything that is not a list of objects fails validation.
    """

    model_config = ConfigDict(extra="ignore")

    orders: typing.List[Record] = Field(default_factory=list)
    logs: typing.List[Record] = Field(default_factory=list)

    @field_validator("orders", "logs", mode="before")
    @classmethod
    def _null_as_empty(cls, value: typing.Any) -> typing.Any:
        return [] if value is None else value


class ShipmentResult(BaseModel):
    orders: typing.List[Record]
    logs: typing.List[Record]


class VerificationResult(BaseModel):
    """Reply of the reCAPTCHA siteverify endpoint. Extra fields are kept for diagnostics."""

    model_config = ConfigDict(extra="allow")

    success: bool = False
