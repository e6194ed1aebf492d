from typing import Iterator, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class WhatsAppText(BaseModel):
    body: str = ""


class WhatsAppInboundMessage(BaseModel):
    id: str
    from_number: str = Field(validation_alias=AliasChoices("from", "from_number"))
    timestamp: Optional[str] = None
    type: str = "text"
    text: Optional[WhatsAppText] = None

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @property
    def body(self) -> str:
        return self.text.body if self.text else ""


class WhatsAppChangeValue(BaseModel):
    messaging_product: Optional[str] = None
    messages: list[WhatsAppInboundMessage] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class WhatsAppChange(BaseModel):
    field: Optional[str] = None
    value: WhatsAppChangeValue = Field(default_factory=WhatsAppChangeValue)


class WhatsAppEntry(BaseModel):
    id: Optional[str] = None
    changes: list[WhatsAppChange] = Field(default_factory=list)


class WhatsAppWebhookPayload(BaseModel):
    object: Optional[str] = None
    entry: list[WhatsAppEntry] = Field(default_factory=list)

    def iter_messages(self) -> Iterator[WhatsAppInboundMessage]:
        for entry in self.entry:
            for change in entry.changes:
                yield from change.value.messages


class WebhookResponse(BaseModel):
    success: bool
    message: str
    processed: list[dict] = Field(default_factory=list)
