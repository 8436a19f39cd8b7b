"""Email campaign and dashboard status models."""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field


class Recipient(BaseModel):
    email: str
    first_name: str = "Friend"
    segment: str = "general"
    total_spent: float = 0.0


class CampaignContent(BaseModel):
    subject: str
    headline: str
    body: str = Field(..., description="Plain-text paragraphs, blank-line separated")
    cta: str
    vip_note: str = ""


class SendResult(BaseModel):
    email: str
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


class CampaignResult(BaseModel):
    campaign: str
    sent: int = 0
    failed: int = 0
    details: List[SendResult] = Field(default_factory=list)

    def record(self, result: SendResult) -> None:
        self.details.append(result)
        if result.success:
            self.sent += 1
        else:
            self.failed += 1


class ApiStatus(BaseModel):
    connected: bool = False
    last_check: Optional[datetime] = None


class DashboardStats(BaseModel):
    total_requests: int = 0
    successful: int = 0
    failed: int = 0
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
