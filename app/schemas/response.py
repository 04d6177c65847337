from pydantic import BaseModel
from typing import Literal, Optional


class ErrorResponse(BaseModel):
    """
    Standard error envelope.
    """
    ok: Literal[False] = False
    error: str
    retry_after: Optional[int] = None
