from datetime import datetime

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    ocr: str
    llm: str
    timestamp: datetime
    environment: str
    version: str
