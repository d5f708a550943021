"""
Email Dispatch Schemas
"""
from pydantic import BaseModel
from typing import Optional


class SendEmailRequest(BaseModel):
    """Body of the dispatch endpoint; fields are checked by hand to answer 400, not 422"""
    to: Optional[str] = None
    subject: Optional[str] = None
    html: Optional[str] = None


class EmailResult(BaseModel):
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None
    dev: bool = False
