# the only data that crosses the session boundary: chunk | done | error

from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel


class ChunkEvent(BaseModel):
    type: Literal["chunk"] = "chunk"
    content: Optional[str] = None
    reasoning: Optional[str] = None


class DoneEvent(BaseModel):
    type: Literal["done"] = "done"


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    error: str


GatewayEvent = Union[ChunkEvent, DoneEvent, ErrorEvent]


def to_wire(event: GatewayEvent) -> Dict[str, Any]:
    # absent delta fields are left out of the frame instead of being sent as null
    return event.model_dump(exclude_none=True)
