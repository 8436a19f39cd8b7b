"""
Shared pytest fixtures.

Every test runs against throwaway settings: fake credentials (vendors are
never contacted) and data/report directories under tmp_path.
"""

import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest

from legacy_ops.config import get_settings

TEST_ENV = {
    "SLACK_BOT_TOKEN": "xoxb-test",
    "SLACK_SIGNING_SECRET": "test-signing-secret",
    "SLACK_CHANNEL_ID": "C_GENERAL",
    "SLACK_APPROVAL_CHANNEL_ID": "C_APPROVAL",
    "SLACK_SOCIAL_CHANNEL_ID": "C_SOCIAL",
    "CLOUDFLARE_EMAIL": "ops@example.com",
    "CLOUDFLARE_API_KEY": "cf-test",
    "CLOUDFLARE_ZONE_ID": "zone-1",
    "RENDER_API_KEY": "rnd-test",
    "RENDER_OWNER_ID": "own-1",
    "INSTAGRAM_ACCESS_TOKEN": "ig-test",
    "INSTAGRAM_BUSINESS_ACCOUNT_ID": "1789",
    "INSTAGRAM_PROCESSING_CHECKS": "3",
    "INSTAGRAM_PROCESSING_SLEEP": "0",
    "LIGHTSPEED_ACCOUNT_ID": "12345",
    "LIGHTSPEED_ACCESS_TOKEN": "ls-test",
    "MAILGUN_API_KEY": "mg-test",
    "MAILGUN_DOMAIN": "mg.example.com",
    "MAILGUN_FROM": "Legacy Wine & Liquor <deals@mg.example.com>",
    "OWNER_NOTIFICATION_EMAIL": "owner@example.com",
    "OWNER_SMS_GATEWAY": "4075550100@sms.example.com",
    "N8N_BASE_URL": "http://n8n.test",
    "N8N_API_KEY": "n8n-test",
    "ZAPIER_INSTAGRAM_WEBHOOK": "https://hooks.zapier.test/hooks/catch/1/abc",
    "ANTHROPIC_API_KEY": "sk-ant-test",
    "GITHUB_TOKEN": "ghp_test",
    "GITHUB_USERNAME": "legacywine",
}


@pytest.fixture(autouse=True)
def test_settings(monkeypatch, tmp_path):
    """Fake credentials plus tmp data/report dirs; settings are rebuilt per test."""
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("REPORTS_DIR", str(tmp_path / "reports"))
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()
