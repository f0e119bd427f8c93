"""Replication messages and their JSON wire format.

Four message kinds travel over the broadcast channel, discriminated by
their ``type`` field:

    {"type": "REQUEST_STATE", "time": 1700000000000}
    {"type": "RECEIVE_STATE", "state": {"user": {"role": "visitor"}}}
    {"type": "CREATE_OBSERVABLE", "name": "profile", "data": {"level": 1}}
    {"type": "UPDATE_OBSERVABLE", "observable": "profile", "prop": "level", "value": 2}

decode() never lets a bad payload through: anything that is not valid
JSON or does not match one of the shapes above raises MalformedMessage.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

REQUEST_STATE = "REQUEST_STATE"
RECEIVE_STATE = "RECEIVE_STATE"
CREATE_OBSERVABLE = "CREATE_OBSERVABLE"
UPDATE_OBSERVABLE = "UPDATE_OBSERVABLE"


class MalformedMessage(ValueError):
    """Raised when a channel payload cannot be decoded into a known message."""


class _Message(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class RequestState(_Message):
    """Ask peers for a full snapshot. origin_time is the requester's start time (ms)."""

    type: Literal["REQUEST_STATE"] = REQUEST_STATE
    origin_time: int = Field(alias="time")


class SnapshotState(_Message):
    type: Literal["RECEIVE_STATE"] = RECEIVE_STATE
    observables: dict[str, dict[str, Any]] = Field(alias="state")


class CreateObservable(_Message):
    type: Literal["CREATE_OBSERVABLE"] = CREATE_OBSERVABLE
    name: str
    data: dict[str, Any] = Field(default_factory=dict)


class UpdateObservable(_Message):
    type: Literal["UPDATE_OBSERVABLE"] = UPDATE_OBSERVABLE
    name: str = Field(alias="observable")
    prop: str
    value: Any = None


ReplicationMessage = Annotated[
    Union[RequestState, SnapshotState, CreateObservable, UpdateObservable],
    Field(discriminator="type"),
]

_adapter: TypeAdapter[ReplicationMessage] = TypeAdapter(ReplicationMessage)


def encode(message: _Message) -> str:
    """Serialize a message to its wire JSON (wire field names)."""
    return message.model_dump_json(by_alias=True)


def decode(raw: str | bytes) -> ReplicationMessage:
    """Parse wire JSON into a message. Raises MalformedMessage on anything else."""
    if not isinstance(raw, (str, bytes, bytearray)):
        raise MalformedMessage(f"expected JSON text, got {type(raw).__name__}")
    try:
        return _adapter.validate_json(raw)
    except ValidationError as exc:
        raise MalformedMessage(str(exc)) from exc
