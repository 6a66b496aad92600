from pydantic import BaseModel


class MessageResponse(BaseModel):
    """Simple message response."""

    message: str


class StatusResponse(BaseModel):
    status: str
    message: str
