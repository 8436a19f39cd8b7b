from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    app_name: str = "Legacy Ops"
    debug: bool = False
    data_dir: str = "data"
    reports_dir: str = "reports"
    api_base_url: str = "http://127.0.0.1:8000"

    # Business
    store_name: str = "Legacy Wine & Liquor"
    store_instagram_url: str = "https://instagram.com/legacywineandliquor"

    # Slack
    slack_bot_token: str = ""
    slack_signing_secret: str = ""
    slack_channel_id: str = ""
    slack_approval_channel_id: str = ""  # #social-media-approvals
    slack_social_channel_id: str = ""  # #social

    # Cloudflare
    cloudflare_email: str = ""
    cloudflare_api_key: str = ""
    cloudflare_zone_id: str = ""

    # Notion
    notion_token: str = ""
    notion_database_id: str = ""

    # Render
    render_api_key: str = ""
    render_owner_id: str = ""

    # OpenAI
    openai_api_key: str = ""
    openai_model: str = "gpt-4-turbo-preview"
    temperature: float = 0.7

    # Instagram Graph API
    instagram_access_token: str = ""
    instagram_business_account_id: str = ""

    # Anthropic
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-3-5-sonnet-20241022"

    # Vertex AI
    vertex_project_id: str = ""
    vertex_location: str = "us-central1"
    vertex_model: str = "gemini-1.5-pro"

    # Lightspeed Retail
    lightspeed_account_id: str = ""
    lightspeed_access_token: str = ""
    lightspeed_refresh_token: str = ""
    lightspeed_client_id: str = ""
    lightspeed_client_secret: str = ""

    # Airtable
    airtable_api_key: str = ""
    airtable_base_id: str = ""
    airtable_default_table: str = "Wine Inventory"

    # GitHub
    github_token: str = ""
    github_username: str = ""

    # Mailgun
    mailgun_api_key: str = ""
    mailgun_domain: str = ""
    mailgun_api_url: str = "https://api.mailgun.net/v3"
    mailgun_from: str = ""

    # Owner alerts after a campaign launch
    owner_notification_email: str = ""
    owner_sms_gateway: str = ""  # Carrier email-to-SMS address, e.g. 4075550100@tmomail.net

    # N8N
    n8n_base_url: str = "http://localhost:5678"
    n8n_api_key: str = ""

    # Zapier
    zapier_instagram_webhook: str = ""

    # Bot
    bot_name: str = "Claude 24/7 Slack Bot"
    bot_max_tokens: int = 1024
    conversation_capacity: int = 500  # Sessions kept before LRU eviction
    conversation_max_turns: int = 20  # Turns kept per session

    # Campaign workers
    approval_poll_interval: int = 10  # Seconds
    instagram_processing_checks: int = 10
    instagram_processing_sleep: float = 5.0  # Seconds between status checks

    model_config = ConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
