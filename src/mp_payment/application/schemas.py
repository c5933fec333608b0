from typing import Literal

from pydantic import BaseModel


class WebhookAck(BaseModel):
    """Returned to the gateway with HTTP 200 for every verified event.

    status:
      applied   - the outcome changed the order
      unchanged - the outcome was valid but the order already reflected it
      duplicate - this event id was processed before
      ignored   - event type not handled or no order reference
      rejected  - the outcome conflicts with the order's state (logged for review)
    """

    event_id: str
    status: Literal["applied", "unchanged", "duplicate", "ignored", "rejected"]
    order_id: str | None = None
    order_status: str | None = None
    payment_status: str | None = None
