from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class GenerateMessage(BaseModel):
    """
    Inbound message from a session (websocket frame or POST /generate body).
    action picks the prompt templates; the provider always comes from configuration.
    Unknown keys are kept and travel with the generation as additional fields.
    """

    model_config = ConfigDict(extra="allow")

    action: str = Field(min_length=1)
    subtitles: Optional[Union[str, List[Any]]] = None
    content: Optional[str] = None
    title: Optional[str] = None

    def additional_fields(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})


class GenerateResponse(BaseModel):
    # provider/model stay empty for actions answered without a model call
    content: str
    provider: Optional[str] = None
    model: Optional[str] = None
