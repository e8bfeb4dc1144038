# MIT License
# Copyright (c) 2025 Hashborn

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from typing import Annotated, Literal, Union
from .common import MessageKind


class ResourceTransfer(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["resource"] = MessageKind.RESOURCE.value
    amount: int              # signed, sender already debited

    def __str__(self) -> str:
        return f"resource {self.amount}"


class SnapshotMarker(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["snapshot"] = MessageKind.SNAPSHOT.value
    epoch_id: int

    def __str__(self) -> str:
        return f"marker {self.epoch_id}"


Message = Annotated[Union[ResourceTransfer, SnapshotMarker], Field(discriminator="kind")]

_message_adapter = TypeAdapter(Message)


def parse_message(data: dict) -> Union[ResourceTransfer, SnapshotMarker]:
    """Validates a raw dict (e.g. from a trace dump) into a message."""
    return _message_adapter.validate_python(data)
