"""Welcome-message schemas: form input, assembled payload, dispatch credentials."""

from typing import Literal

from pydantic import BaseModel, Field, field_validator

from plzdm.constants import CTA_TYPE_WEB_URL, MAX_CTAS


class WelcomeMessageForm(BaseModel):
    main_text: str = ""
    label_1: str | None = None
    link_1: str | None = None
    label_2: str | None = None
    link_2: str | None = None
    label_3: str | None = None
    link_3: str | None = None

    @field_validator("*", mode="before")
    @classmethod
    def _strip(cls, v: str | None) -> str | None:
        if isinstance(v, str):
            return v.strip()
        return v


class CallToAction(BaseModel):
    type: Literal["web_url"] = CTA_TYPE_WEB_URL
    label: str
    url: str


class WelcomeMessagePayload(BaseModel):
    """The ``message_data`` block sent to the welcome-message endpoint."""

    text: str = Field(min_length=1)
    ctas: list[CallToAction] | None = Field(None, max_length=MAX_CTAS)

    def to_message_data(self) -> dict:
        # The API rejects an empty ctas array, so the key is left out entirely
        return self.model_dump(exclude_none=True)


class TwitterCredentials(BaseModel):
    access_token_key: str
    access_token_secret: str
    external_account_id: str
    account_handle: str


class LinkedAccount(BaseModel):
    twitter_user_id: str
    user_name: str
