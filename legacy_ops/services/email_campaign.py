"""
Weekend Email Campaign

Generates campaign copy with OpenAI (falling back to fixed copy), renders one
HTML email per recipient and sends through Mailgun. The launch flow also
publishes the campaign to Instagram, tells the team in Slack and sends the
owner a launch report by email and SMS.
"""

import asyncio
import html
import logging
from collections import Counter
from typing import Any, Dict, List, Optional, Tuple

from legacy_ops.config import get_settings
from legacy_ops.integrations.mailgun import MailgunClient
from legacy_ops.integrations.openai import OpenAIClient
from legacy_ops.integrations.slack import SlackClient
from legacy_ops.integrations.zapier import ZapierClient
from legacy_ops.models import CampaignContent, CampaignResult, Recipient, SendResult
from legacy_ops.prompts import EMAIL_CAMPAIGN_PROMPT, render_prompt
from legacy_ops.services.analytics import SalesIntelligence
from legacy_ops.services.content import get_template, store_info

logger = logging.getLogger(__name__)

CAMPAIGN_NAME = "Weekend Wine Special"
SUBJECT = "🍷 Weekend Wine Special - Up to 30% OFF Premium Selections!"
HEADLINE = "Weekend Wine Spectacular"
CTA = "Shop Weekend Specials →"

OFFERS = [
    "30% OFF all premium red wines ($50+)",
    "25% OFF champagne and sparkling wines",
    "Buy 2 Get 1 FREE on selected craft beers",
    "NEW: Meukow Cognac VS - Special intro price $39.99",
]

DEFAULT_BODY = """This weekend only, we're offering extraordinary savings on our finest wine collection at Legacy Wine & Liquor!

Join us for our biggest wine event of the season with up to 30% OFF premium selections. Whether you're a connoisseur of bold reds, crisp whites, or celebratory bubbles, we have something special waiting for you.

EXCLUSIVE WEEKEND OFFERS:
{offers}

Our expert staff is ready to help you discover your new favorite wine or find the perfect gift.

Limited quantities available - these deals end Sunday at 8 PM!

See you this weekend!
The Legacy Wine & Liquor Team"""

SMS_MESSAGE = (
    "🍷 Legacy Wine Weekend Special! 30% OFF premium wines, 25% OFF champagne. "
    "TODAY-SUNDAY ONLY! 200 S French Ave, Sanford. Reply STOP to opt out."
)

# Placeholder list used until real customer emails are loaded
SAMPLE_RECIPIENTS = [
    Recipient(email="john.smith@example.com", first_name="John", segment="high_value"),
    Recipient(email="sarah.j@example.com", first_name="Sarah", segment="high_value"),
    Recipient(email="m.chen@example.com", first_name="Michael", segment="frequent_buyers"),
    Recipient(email="lisa.a@example.com", first_name="Lisa", segment="frequent_buyers"),
    Recipient(email="rdavis@example.com", first_name="Robert", segment="at_risk"),
    Recipient(email="emily.w@example.com", first_name="Emily", segment="at_risk"),
]

OWNER_SUBJECT = "🎉 Weekend Wine Campaign Successfully Launched!"

SEGMENT_BY_CUSTOMER = {"VIP": "high_value", "Frequent": "frequent_buyers"}


def recipients_from_customers(customers: List[Dict[str, Any]]) -> List[Recipient]:
    """Build recipients from aggregated customers, skipping those without an email."""
    recipients = []
    for c in customers:
        if not c.get("email"):
            continue
        first_name = (c.get("name") or "").split(" ")[0]
        recipients.append(
            Recipient(
                email=c["email"],
                first_name=first_name if first_name and first_name != "Unknown" else "Friend",
                segment=SEGMENT_BY_CUSTOMER.get(c.get("segment"), "general"),
                total_spent=c.get("total_spent", 0.0),
            )
        )
    return recipients


async def load_customer_recipients(analyzer: SalesIntelligence) -> List[Recipient]:
    """Recipients from Lightspeed repeat customers (last 90 days) that have an email on file."""
    result = await analyzer.get_repeat_customers()
    if not result.get("success"):
        raise RuntimeError(result.get("error") or result.get("message") or "Customer analytics unavailable")
    return recipients_from_customers(result["data"]["customers"])


def default_content() -> CampaignContent:
    offers = "\n".join(f"• {offer}" for offer in OFFERS)
    return CampaignContent(
        subject=SUBJECT,
        headline=HEADLINE,
        body=DEFAULT_BODY.format(offers=offers),
        cta=CTA,
        vip_note="VIP early access: shop Friday 10 AM - 12 PM for an additional 5% off!",
    )


def render_html(content: CampaignContent, first_name: str) -> str:
    store = store_info()
    body = html.escape(content.body)
    vip = f'<p class="vip">{html.escape(content.vip_note)}</p>' if content.vip_note else ""
    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <title>{html.escape(content.subject)}</title>
  <style>
    body {{ font-family: Georgia, serif; line-height: 1.6; color: #333; background: #f4f4f4; }}
    .container {{ max-width: 600px; margin: 0 auto; background: white; }}
    .header {{ background: #764ba2; color: white; padding: 40px 20px; text-align: center; }}
    .content {{ padding: 30px 20px; }}
    .offer-box {{ background: #f9f9f9; border-left: 4px solid #764ba2; padding: 20px; }}
    .cta-button {{ display: inline-block; background: #764ba2; color: white; padding: 15px 40px; border-radius: 50px; }}
    .footer {{ background: #333; color: #999; padding: 30px 20px; text-align: center; font-size: 14px; }}
  </style>
</head>
<body>
  <div class="container">
    <div class="header">
      <h1>🍷 {html.escape(store['name'])} 🍷</h1>
      <p>{html.escape(content.headline)}</p>
    </div>
    <div class="content">
      <p class="greeting">Dear {html.escape(first_name)},</p>
      <div style="white-space: pre-line;">{body}</div>
      {vip}
      <div class="offer-box">
        <h3>📍 Visit Us This Weekend!</h3>
        <p><strong>{html.escape(store['name'])}</strong><br>{html.escape(store['address'])}<br>📞 {html.escape(store['phone'])}</p>
      </div>
      <p style="text-align: center;"><span class="cta-button">{html.escape(content.cta)}</span></p>
      <p style="text-align: center; color: #999; font-size: 14px;">
        *Offers valid through Sunday. While supplies last. Must be 21+ with valid ID.
      </p>
    </div>
    <div class="footer">
      <p>{html.escape(store['name'])} · {html.escape(store['address'])}</p>
      <p>You're receiving this because you're a valued customer.</p>
    </div>
  </div>
</body>
</html>"""


def owner_report(result: CampaignResult, instagram_posted: Optional[bool]) -> Tuple[str, str, str]:
    """(html, text, sms) launch report for the owner. instagram_posted is None when the post was skipped."""
    instagram = {None: "Skipped", True: "✅ Posted via Zapier", False: "❌ Not posted"}[instagram_posted]
    email = f"✅ {result.sent} customers reached"
    if result.failed:
        email += f" ({result.failed} failed)"
    rows = [("📱 Instagram Post", instagram), ("📧 Email Campaign", email)]
    store = store_info()

    metrics = "\n".join(
        f'        <div class="metric-item"><strong>{label}</strong> <span>{html.escape(value)}</span></div>'
        for label, value in rows
    )
    offers = "\n".join(f"        <li>{html.escape(offer)}</li>" for offer in OFFERS)
    page = f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <style>
    body {{ font-family: Arial, sans-serif; background: #f5f5f5; padding: 20px; }}
    .container {{ max-width: 600px; margin: 0 auto; background: white; border-radius: 10px; }}
    .header {{ background: #764ba2; color: white; padding: 30px; text-align: center; }}
    .content {{ padding: 30px; }}
    .metrics {{ background: #f9f9f9; padding: 20px; border-radius: 5px; }}
    .metric-item {{ padding: 10px 0; border-bottom: 1px solid #e0e0e0; }}
  </style>
</head>
<body>
  <div class="container">
    <div class="header">
      <h1>🍷 Campaign Launched!</h1>
      <p>{html.escape(CAMPAIGN_NAME)} is LIVE</p>
    </div>
    <div class="content">
      <h2>📊 Campaign Status Report</h2>
      <div class="metrics">
{metrics}
      </div>
      <h3>🎯 Offers Now Live:</h3>
      <ul>
{offers}
      </ul>
      <p><strong>{html.escape(store['name'])}</strong><br>{html.escape(store['address'])}<br>📞 {html.escape(store['phone'])}</p>
      <p style="color: #666; font-size: 14px;">Check Slack #social for real-time updates.</p>
    </div>
  </div>
</body>
</html>"""

    text = "\n".join(
        [f"🍷 {CAMPAIGN_NAME.upper()} LAUNCHED!", ""]
        + [f"{label}: {value}" for label, value in rows]
        + ["", "OFFERS (LIVE NOW):"]
        + [f"• {offer}" for offer in OFFERS]
        + ["", store["name"], store["address"], store["phone"]]
    )

    channels = "posted to Instagram & " if instagram_posted else ""
    sms = (
        f"🍷 CAMPAIGN LIVE! {CAMPAIGN_NAME} {channels}{result.sent} emails sent. "
        "30% OFF wines, 25% OFF champagne. Check Slack #social for details. - Legacy Wine Bot"
    )
    return page, text, sms


class EmailCampaign:
    def __init__(
        self,
        openai: Optional[OpenAIClient] = None,
        mailgun: Optional[MailgunClient] = None,
        slack: Optional[SlackClient] = None,
        zapier: Optional[ZapierClient] = None,
        send_delay: float = 1.0,
    ):
        self.settings = get_settings()
        self.openai = openai or OpenAIClient()
        self.mailgun = mailgun or MailgunClient()
        self.slack = slack or SlackClient()
        self.zapier = zapier or ZapierClient()
        self.send_delay = send_delay

    async def generate_content(self) -> CampaignContent:
        """AI-written body when OpenAI answers, otherwise the fixed weekend copy."""
        if not self.openai.is_configured:
            return default_content()
        store = store_info()
        system, user = render_prompt(
            EMAIL_CAMPAIGN_PROMPT,
            brand=store["name"],
            campaign_name=CAMPAIGN_NAME.lower(),
            address=store["address"],
            hours=store["hours"],
            phone=store["phone"],
            offers="\n".join(f"{i}. {offer}" for i, offer in enumerate(OFFERS, 1)),
        )
        body = await self.openai.chat_completion(user, system_prompt=system, temperature=0.8, max_tokens=800)
        if not body:
            logger.warning("Campaign copy generation failed, using default content")
            return default_content()
        return CampaignContent(subject=SUBJECT, headline=HEADLINE, body=body.strip(), cta=CTA)

    async def send_to(self, recipient: Recipient, content: CampaignContent) -> SendResult:
        result = await self.mailgun.send_email(
            recipient.email,
            content.subject,
            render_html(content, recipient.first_name),
            text=content.body,
            tags=["weekend-special", recipient.segment],
        )
        if result["success"]:
            return SendResult(email=recipient.email, success=True, message_id=result.get("id"))
        return SendResult(email=recipient.email, success=False, error=result.get("error"))

    async def send_campaign(
        self, recipients: Optional[List[Recipient]] = None, content: Optional[CampaignContent] = None
    ) -> CampaignResult:
        """Send to each recipient in turn, pausing send_delay seconds between messages."""
        recipients = recipients if recipients is not None else SAMPLE_RECIPIENTS
        content = content or await self.generate_content()
        result = CampaignResult(campaign=CAMPAIGN_NAME)
        logger.info(f"Sending '{content.subject}' to {len(recipients)} recipients")

        for i, recipient in enumerate(recipients):
            if i and self.send_delay:
                await asyncio.sleep(self.send_delay)
            result.record(await self.send_to(recipient, content))

        logger.info(f"Campaign finished: {result.sent} sent, {result.failed} failed")
        return result

    def campaign_summary(
        self, recipients: Optional[List[Recipient]] = None, sms_names: Optional[List[str]] = None
    ) -> Dict[str, Any]:
        recipients = recipients if recipients is not None else SAMPLE_RECIPIENTS
        sms_names = sms_names or []
        return {
            "campaign": CAMPAIGN_NAME,
            "subject": SUBJECT,
            "recipients": len(recipients),
            "segments": dict(Counter(r.segment for r in recipients)),
            "sms": {"message": SMS_MESSAGE, "recipients": len(sms_names), "preview": sms_names[:5]},
        }

    async def launch(
        self, recipients: Optional[List[Recipient]] = None, post_instagram: bool = True
    ) -> Dict[str, Any]:
        """Instagram post, team notification in Slack, then the email send."""
        recipients = recipients if recipients is not None else SAMPLE_RECIPIENTS
        instagram: Optional[Dict[str, Any]] = None
        if post_instagram:
            template = get_template("weekendSpecial")
            caption = f"🍷 {template.title}\n\n{template.description}\n\n{template.hashtags}"
            instagram = await self.zapier.post_to_instagram(template.image_url, caption, CAMPAIGN_NAME)

        summary = self.campaign_summary(recipients)
        await self.slack.send_message(
            self.settings.slack_channel_id,
            "📢 *WEEKEND CAMPAIGN LAUNCHED!*\n\n"
            f"🎯 Campaign: {CAMPAIGN_NAME}\n"
            f"📧 Email: {summary['recipients']} customers\n"
            f"📸 Instagram: {'posted' if instagram and instagram['success'] else 'not posted'}\n\n"
            "*Featured Offers:*\n" + "\n".join(f"• {offer}" for offer in OFFERS),
        )

        email = await self.send_campaign(recipients)
        notification = await self.notify_owner(email, instagram["success"] if instagram else None)
        return {
            "instagram": instagram,
            "summary": summary,
            "email": email.model_dump(),
            "notification": notification,
        }

    async def notify_owner(self, result: CampaignResult, instagram_posted: Optional[bool] = None) -> Dict[str, bool]:
        """Email and SMS the launch report to the owner. Returns {"email": bool, "sms": bool}."""
        page, text, sms = owner_report(result, instagram_posted)
        notification = await self.mailgun.send_notification(OWNER_SUBJECT, page, text, sms)
        logger.info(f"Owner notified: email={notification['email']} sms={notification['sms']}")
        return notification
