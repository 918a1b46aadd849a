"""Request models shared by several routers."""

from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

from templating.models import HttpMethod, Header, RequestTemplate


class HeaderModel(BaseModel):
    """Header pair model; the value is kept verbatim."""
    key: str = ""
    value: str = ""

    @field_validator("key")
    @classmethod
    def strip_key(cls, value: str) -> str:
        return value.strip()


class RequestTemplateModel(BaseModel):
    """Request template model; URL, header values and body may hold placeholders."""
    method: HttpMethod
    url: str = Field(..., min_length=1)
    headers: List[HeaderModel] = []
    body: Optional[str] = None

    @field_validator("url")
    @classmethod
    def strip_url(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Please enter a valid URL (e.g., https://example.com)")
        return value

    def to_template(self) -> RequestTemplate:
        return RequestTemplate(
            method=self.method,
            url=self.url,
            headers=[Header(key=h.key, value=h.value) for h in self.headers],
            body=self.body,
        )
