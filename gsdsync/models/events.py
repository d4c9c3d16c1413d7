from pydantic import BaseModel

INBOX_ITEM_CREATED = "inbox_item_created"


class PushEnvelope(BaseModel):
    type: str
    data: dict = {}
