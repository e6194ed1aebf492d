from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class TicketItem(BaseModel):
    ticket_number: str = Field(alias="ticketNumber")
    issue: str
    status: str
    created_at: datetime = Field(alias="createdAt")
    customer_phone: str = Field(alias="customerPhone")

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class TicketsResponse(BaseModel):
    tickets: list[TicketItem]
