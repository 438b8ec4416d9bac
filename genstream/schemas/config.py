from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class AIConfig(BaseModel):
    """
    Snapshot of the user's provider settings, as stored by the settings UI.
    Field names follow the stored camelCase keys; populate_by_name lets python code use snake_case.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    provider: str
    api_keys: Dict[str, Optional[str]] = Field(default_factory=dict, alias="apiKeys")
    model: str = ""
    custom_model: Optional[str] = Field(default=None, alias="customModel")
    base_url: Optional[str] = Field(default=None, alias="baseUrl")
    base_urls: Dict[str, Optional[str]] = Field(default_factory=dict, alias="baseUrls")
    reply_language: Optional[str] = Field(default=None, alias="replyLanguage")

    def api_key(self) -> Optional[str]:
        return self.api_keys.get(self.provider) or None

    # customModel wins over the model picked from the list
    def effective_model(self) -> str:
        return self.custom_model or self.model

    def base_url_override(self) -> Optional[str]:
        url = self.base_urls.get(self.provider) or self.base_url
        return url.rstrip("/") if url else None
