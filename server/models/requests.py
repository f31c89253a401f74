from pydantic import BaseModel, Field

from shared.models.events import HostEvent


class WebhookRequest(BaseModel):
    event: HostEvent


class RebuildRequest(BaseModel):
    context_id: int | None = None
    apply: bool = False


class PushRequest(BaseModel):
    batch_size: int | None = Field(default=None, gt=0)
    context_id: int | None = None
