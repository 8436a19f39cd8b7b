"""
Weekend Email Campaign Tests
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from legacy_ops.models import CampaignResult, Recipient
from legacy_ops.services.email_campaign import (
    CAMPAIGN_NAME,
    OFFERS,
    OWNER_SUBJECT,
    SAMPLE_RECIPIENTS,
    SUBJECT,
    EmailCampaign,
    default_content,
    load_customer_recipients,
    owner_report,
    recipients_from_customers,
    render_html,
)


def _campaign(openai_configured=False, chat_reply=None):
    openai = MagicMock()
    openai.is_configured = openai_configured
    openai.chat_completion = AsyncMock(return_value=chat_reply)
    mailgun = MagicMock()
    mailgun.send_email = AsyncMock(return_value={"success": True, "id": "<m1@mg>", "message": "Queued"})
    mailgun.send_notification = AsyncMock(return_value={"email": True, "sms": True})
    slack = MagicMock()
    slack.send_message = AsyncMock(return_value={"ok": True, "ts": "1.0"})
    zapier = MagicMock()
    zapier.post_to_instagram = AsyncMock(return_value={"success": True, "response": {}})
    return EmailCampaign(openai=openai, mailgun=mailgun, slack=slack, zapier=zapier, send_delay=0)


def test_default_content_lists_offers():
    content = default_content()

    assert content.subject == SUBJECT
    for offer in OFFERS:
        assert f"• {offer}" in content.body


def test_render_html_escapes_and_greets():
    content = default_content()
    content.body = "Reds <b>30%</b> off & more"

    page = render_html(content, "Ana")

    assert "Dear Ana," in page
    assert "Reds &lt;b&gt;30%&lt;/b&gt; off &amp; more" in page
    assert "200 S French Ave, Sanford, FL 32771" in page


def test_recipients_from_customers():
    customers = [
        {"email": "ana@example.com", "name": "Ana Reyes", "segment": "VIP", "total_spent": 1200.0},
        {"email": "", "name": "No Mail", "segment": "Frequent"},
        {"email": "x@example.com", "name": "Unknown", "segment": "Two-time", "total_spent": 80.0},
    ]

    recipients = recipients_from_customers(customers)

    assert [(r.email, r.first_name, r.segment) for r in recipients] == [
        ("ana@example.com", "Ana", "high_value"),
        ("x@example.com", "Friend", "general"),
    ]


def test_generate_content_without_openai_uses_default():
    campaign = _campaign()

    assert asyncio.run(campaign.generate_content()) == default_content()
    campaign.openai.chat_completion.assert_not_called()


def test_generate_content_uses_ai_body():
    campaign = _campaign(openai_configured=True, chat_reply="  Fresh copy for the weekend.  ")

    content = asyncio.run(campaign.generate_content())

    assert content.body == "Fresh copy for the weekend."
    kwargs = campaign.openai.chat_completion.call_args.kwargs
    assert kwargs["temperature"] == 0.8
    assert kwargs["max_tokens"] == 800


def test_generate_content_falls_back_when_ai_fails():
    campaign = _campaign(openai_configured=True, chat_reply=None)
    assert asyncio.run(campaign.generate_content()).body == default_content().body


def test_send_campaign_counts_failures():
    campaign = _campaign()
    campaign.mailgun.send_email.side_effect = [
        {"success": True, "id": "<a@mg>"},
        {"success": False, "error": "HTTP 400"},
        {"success": True, "id": "<c@mg>"},
    ]
    recipients = [Recipient(email=f"{n}@example.com", first_name=n) for n in ("a", "b", "c")]

    result = asyncio.run(campaign.send_campaign(recipients))

    assert (result.sent, result.failed) == (2, 1)
    assert result.details[1].error == "HTTP 400"
    assert result.details[0].message_id == "<a@mg>"
    args, kwargs = campaign.mailgun.send_email.call_args_list[0]
    assert args[0] == "a@example.com"
    assert kwargs["tags"] == ["weekend-special", "general"]


def test_send_campaign_defaults_to_sample_recipients():
    campaign = _campaign()

    result = asyncio.run(campaign.send_campaign())

    assert result.sent == len(SAMPLE_RECIPIENTS)


def test_campaign_summary():
    summary = _campaign().campaign_summary(sms_names=["Ana", "Ben"])

    assert summary["campaign"] == CAMPAIGN_NAME
    assert summary["recipients"] == 6
    assert summary["segments"] == {"high_value": 2, "frequent_buyers": 2, "at_risk": 2}
    assert summary["sms"]["recipients"] == 2


@pytest.mark.parametrize("post_instagram", [True, False])
def test_launch(post_instagram):
    campaign = _campaign()

    result = asyncio.run(campaign.launch(post_instagram=post_instagram))

    assert result["email"]["sent"] == 6
    assert campaign.zapier.post_to_instagram.await_count == (1 if post_instagram else 0)
    channel, message = campaign.slack.send_message.call_args.args
    assert channel == "C_GENERAL"
    assert ("📸 Instagram: posted" in message) is post_instagram
    assert result["notification"] == {"email": True, "sms": True}
    report = campaign.mailgun.send_notification.call_args.args
    assert report[0] == OWNER_SUBJECT
    assert "6 customers reached" in report[2]
    assert ("Skipped" in report[2]) is not post_instagram


def test_owner_report_lists_counts_and_offers():
    result = CampaignResult(campaign=CAMPAIGN_NAME, sent=7, failed=1)

    page, text, sms = owner_report(result, instagram_posted=True)

    assert "✅ 7 customers reached (1 failed)" in text
    assert "📱 Instagram Post: ✅ Posted via Zapier" in text
    assert f"• {OFFERS[0]}" in text
    assert "30% OFF all premium red wines ($50+)" in page
    assert sms.startswith(f"🍷 CAMPAIGN LIVE! {CAMPAIGN_NAME} posted to Instagram & 7 emails sent.")


def test_owner_report_when_instagram_failed():
    _, text, sms = owner_report(CampaignResult(campaign=CAMPAIGN_NAME, sent=2), instagram_posted=False)

    assert "❌ Not posted" in text
    assert "posted to Instagram" not in sms


def test_notify_owner_passes_report_to_mailgun():
    campaign = _campaign()

    notification = asyncio.run(campaign.notify_owner(CampaignResult(campaign=CAMPAIGN_NAME, sent=3)))

    assert notification == {"email": True, "sms": True}
    subject, page, text, sms = campaign.mailgun.send_notification.call_args.args
    assert subject == OWNER_SUBJECT
    assert "<!DOCTYPE html>" in page
    assert "3 emails sent" in sms


def test_load_customer_recipients_from_repeat_customers():
    analyzer = MagicMock()
    analyzer.get_repeat_customers = AsyncMock(
        return_value={
            "success": True,
            "data": {
                "summary": {},
                "customers": [
                    {"email": "ben@example.com", "name": "Ben Ortiz", "segment": "VIP", "total_spent": 2000.0},
                    {"email": "", "name": "Dee Park", "segment": "Occasional", "total_spent": 1200.0},
                ],
            },
        }
    )

    recipients = asyncio.run(load_customer_recipients(analyzer))

    assert [(r.email, r.first_name, r.segment) for r in recipients] == [("ben@example.com", "Ben", "high_value")]


def test_load_customer_recipients_raises_when_analytics_fail():
    analyzer = MagicMock()
    analyzer.get_repeat_customers = AsyncMock(
        return_value={"success": False, "message": "Lightspeed access token not configured"}
    )

    with pytest.raises(RuntimeError, match="not configured"):
        asyncio.run(load_customer_recipients(analyzer))
