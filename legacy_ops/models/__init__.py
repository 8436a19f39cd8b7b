# Shared data models
from legacy_ops.models.knowledge import (
    BusinessKnowledge,
    Holiday,
    HashtagStrategy,
    Product,
    StoreEvent,
    SuccessfulPost,
)
from legacy_ops.models.posts import ApprovalPayload, ManualPost, PendingPost, PostDraft, PostTemplate
from legacy_ops.models.campaigns import (
    ApiStatus,
    CampaignContent,
    CampaignResult,
    DashboardStats,
    Recipient,
    SendResult,
)

__all__ = [
    "BusinessKnowledge",
    "Holiday",
    "HashtagStrategy",
    "Product",
    "StoreEvent",
    "SuccessfulPost",
    "ApprovalPayload",
    "ManualPost",
    "PendingPost",
    "PostDraft",
    "PostTemplate",
    "ApiStatus",
    "CampaignContent",
    "CampaignResult",
    "DashboardStats",
    "Recipient",
    "SendResult",
]
