"""
Legacy Ops command line.

Non-interactive entry point for the dashboard, the Instagram post flows, the
email campaign, the business knowledge file, deployments and sales analytics.

Usage:
    legacy-ops dashboard
    legacy-ops post "New Caymus Cabernet just arrived" --publish
    legacy-ops smart-post new-product "Meukow Cognac VS"
    legacy-ops knowledge add-product "Meukow Cognac VS" --category liquor --price 39.99
    legacy-ops campaign send --from-analytics
    legacy-ops analytics export --format csv
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, List, Optional

from legacy_ops.config import get_settings

logger = logging.getLogger("legacy_ops.cli")


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str, ensure_ascii=False))


def _print_status_table(rows: List[dict]) -> None:
    print(f"{'API':<16} {'Status':<16} {'Last Check':<12} Endpoint")
    print("-" * 70)
    for row in rows:
        print(f"{row['api']:<16} {row['status']:<16} {row['last_check']:<12} {row['endpoint']}")


# ---- Dashboard -------------------------------------------------------------


async def cmd_dashboard(args) -> int:
    from legacy_ops.services.dashboard import MasterControl

    control = MasterControl()
    await control.test_connections()
    print(f"\n🎛️  MASTER CONTROL DASHBOARD ({control.connected_count()}/{len(control.apis)} connected)\n")
    _print_status_table(control.status_rows())
    return 0


async def cmd_sync(args) -> int:
    from legacy_ops.services.dashboard import MasterControl

    summary = await MasterControl().sync_all_systems()
    print("\n📊 SYNC SUMMARY")
    for label, count in summary.items():
        print(f"  • {label}: {count}")
    return 0


async def cmd_report(args) -> int:
    from legacy_ops.services.dashboard import MasterControl

    control = MasterControl()
    await control.test_connections()
    result = await control.generate_report()
    print(f"✅ Report saved to: {result['path']}")
    return 0


async def cmd_instagram_ai(args) -> int:
    from legacy_ops.services.dashboard import MasterControl

    result = await MasterControl().post_to_instagram(args.topic)
    if not result["success"]:
        print(f"❌ {result['error']}")
        return 1
    print("✅ Posted to Instagram")
    return 0


# ---- Instagram posts -------------------------------------------------------


async def cmd_post(args) -> int:
    from legacy_ops.services.manual_post import ManualPostService

    service = ManualPostService()
    post = service.create_post(args.description)
    print(f"Category: {post.category}\nImage: {post.image_url}\n\n{post.caption}\n")

    if not args.publish:
        sent = await service.send_preview(post)
        print("📤 Preview sent to Slack" if sent else "⚠️  Could not send the Slack preview")
        return 0

    result = await service.publish(post)
    if not result["success"]:
        print(f"❌ Publish failed: {result.get('error')}")
        return 1
    print("✅ Posted to Instagram")
    return 0


async def cmd_suggest(args) -> int:
    from legacy_ops.services.post_generator import PostGenerator

    for suggestion in PostGenerator().suggest_posts():
        print(f"[{suggestion['priority']}] {suggestion['name']} ({suggestion['type']})")
    return 0


async def cmd_smart_post(args) -> int:
    from legacy_ops.services.post_generator import PostGenerator

    generator = PostGenerator()
    post = generator.generate(args.type, args.text or "")
    print(f"Theme: {post.theme}\nImage: {post.image_url}\n\n{post.full_caption()}\n")
    if args.no_approval:
        return 0
    pending = await generator.send_for_approval(post)
    if pending is None:
        print("❌ Could not send the post for approval")
        return 1
    print("📤 Sent for approval; run 'legacy-ops publish-pending' after it is approved")
    return 0


async def cmd_publish_pending(args) -> int:
    from legacy_ops.services.post_generator import PostGenerator

    if not await PostGenerator().publish_pending():
        print("❌ Nothing published")
        return 1
    print("✅ Pending post published")
    return 0


async def cmd_approve(args) -> int:
    from legacy_ops.services.approvals import request_approval

    result = await request_approval(args.template, args.caption)
    if result is None:
        print("❌ Approval request failed")
        return 1
    print(f"📤 Approval request posted (ts={result.get('ts')})")
    return 0


async def cmd_watch(args) -> int:
    from legacy_ops.services.approvals import ApprovalWatcher

    watcher = ApprovalWatcher(interval=args.interval)
    await watcher.run(max_polls=args.max_polls)
    return 0


# ---- Email campaign --------------------------------------------------------


async def cmd_campaign(args) -> int:
    from legacy_ops.models import CampaignResult
    from legacy_ops.services.analytics import SalesIntelligence
    from legacy_ops.services.email_campaign import CAMPAIGN_NAME, EmailCampaign, load_customer_recipients

    campaign = EmailCampaign()
    if args.action == "notify":
        report = CampaignResult(campaign=CAMPAIGN_NAME, sent=args.sent, failed=args.failed)
        notification = await campaign.notify_owner(report, instagram_posted=args.instagram_posted)
        _print_json(notification)
        return 0 if all(notification.values()) else 1

    recipients = None
    if args.from_analytics:
        analyzer = SalesIntelligence()
        try:
            recipients = await load_customer_recipients(analyzer)
        except RuntimeError as e:
            print(f"❌ Could not load customers: {e}", file=sys.stderr)
            return 1
        finally:
            await analyzer.lightspeed.close()
        logger.info(f"{len(recipients)} customers with an email on file")

    if args.action == "summary":
        _print_json(campaign.campaign_summary(recipients))
        return 0
    if args.action == "launch":
        _print_json(await campaign.launch(recipients, post_instagram=not args.skip_instagram))
        return 0

    result = await campaign.send_campaign(recipients)
    total = result.sent + result.failed
    print(f"✅ Sent: {result.sent}  ❌ Failed: {result.failed}")
    if total:
        print(f"📈 Success rate: {result.sent / total * 100:.1f}%")
    return 0 if not result.failed else 1


# ---- Knowledge base --------------------------------------------------------


async def cmd_knowledge(args) -> int:
    from legacy_ops.services.knowledge_base import KnowledgeBase

    kb = KnowledgeBase()
    if args.action == "init":
        print(f"📚 Knowledge base at {kb.initialize(overwrite=args.overwrite)}")
    elif args.action == "add-product":
        product = kb.add_product(args.name, args.category, args.description, args.price, args.image_url)
        print(f"✅ Added new arrival: {product.name}")
    elif args.action == "add-event":
        event = kb.add_event(args.name, args.date)
        print(f"✅ Added event: {event.name} on {event.date}")
    elif args.action == "record":
        kb.record_success(args.theme, args.engagement)
        print(f"✅ Recorded successful post: {args.theme}")
    elif args.action == "inventory":
        _print_json(kb.inventory_summary())
    elif args.action == "learning":
        _print_json(kb.learning_summary())
    return 0


# ---- Deployment ------------------------------------------------------------


async def cmd_deploy(args) -> int:
    from legacy_ops.services.deployment import deploy_bot_to_render, deploy_instagram_workflow

    if args.target == "bot":
        if not args.repo:
            print("❌ --repo is required to deploy the bot")
            return 1
        result = await deploy_bot_to_render(args.repo, branch=args.branch, plan=args.plan)
    else:
        result = await deploy_instagram_workflow()
    if result is None:
        print("❌ Deployment failed")
        return 1
    _print_json(result)
    return 0


# ---- Analytics -------------------------------------------------------------


async def cmd_analytics(args) -> int:
    from legacy_ops.services.analytics import SalesIntelligence

    analyzer = SalesIntelligence()
    try:
        queries = {
            "test": analyzer.test_connection,
            "today": analyzer.get_today_sales,
            "repeat": analyzer.get_repeat_customers,
            "at-risk": analyzer.get_at_risk_customers,
            "vip": analyzer.get_vip_customers,
            "segments": analyzer.get_customer_segmentation,
            "reengage": analyzer.generate_reengagement_list,
            "dashboard": analyzer.get_dashboard_data,
        }
        if args.query == "export":
            result = await analyzer.export_customer_data(args.format)
        else:
            result = await queries[args.query]()
    finally:
        await analyzer.lightspeed.close()

    _print_json(result)
    return 0 if result.get("success") else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="legacy-ops", description="Legacy Wine & Liquor operations")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("dashboard", help="Test every API and show the status table").set_defaults(func=cmd_dashboard)
    sub.add_parser("sync", help="Pull record counts from every system").set_defaults(func=cmd_sync)
    sub.add_parser("report", help="Write a JSON report to the reports directory").set_defaults(func=cmd_report)

    p = sub.add_parser("instagram-ai", help="Generate a post with OpenAI and publish it via the Graph API")
    p.add_argument("topic")
    p.set_defaults(func=cmd_instagram_ai)

    p = sub.add_parser("post", help="Build a post from a description and preview or publish it")
    p.add_argument("description")
    p.add_argument("--publish", action="store_true", help="Publish through Zapier instead of previewing")
    p.set_defaults(func=cmd_post)

    sub.add_parser("suggest", help="Suggest posts for today").set_defaults(func=cmd_suggest)

    p = sub.add_parser("smart-post", help="Generate a contextual post and send it for approval")
    p.add_argument("type", nargs="?", default="default", choices=["default", "holiday", "new-product", "sale"])
    p.add_argument("text", nargs="?", help="Product name (new-product) or sale items (sale)")
    p.add_argument("--no-approval", action="store_true", help="Only print the post")
    p.set_defaults(func=cmd_smart_post)

    sub.add_parser("publish-pending", help="Publish the post waiting for approval").set_defaults(
        func=cmd_publish_pending
    )

    p = sub.add_parser("approve", help="Request approval for a template post")
    p.add_argument("template", help="weekendSpecial, newArrival, dailyDeal or cocktailRecipe")
    p.add_argument("caption", nargs="?", help="Custom caption")
    p.set_defaults(func=cmd_approve)

    p = sub.add_parser("watch", help="Publish posts approved with a reaction")
    p.add_argument("--interval", type=float, default=None, help="Seconds between polls")
    p.add_argument("--max-polls", type=int, default=None)
    p.set_defaults(func=cmd_watch)

    p = sub.add_parser("campaign", help="Weekend email campaign")
    p.add_argument("action", choices=["send", "summary", "launch", "notify"])
    p.add_argument("--skip-instagram", action="store_true", help="Launch without the Instagram post")
    p.add_argument(
        "--from-analytics", action="store_true", help="Mail Lightspeed repeat customers instead of the sample list"
    )
    p.add_argument("--sent", type=int, default=0, help="notify: emails delivered")
    p.add_argument("--failed", type=int, default=0, help="notify: emails that failed")
    p.add_argument("--instagram-posted", action="store_true", default=None, help="notify: the Instagram post went out")
    p.set_defaults(func=cmd_campaign)

    p = sub.add_parser("knowledge", help="Business knowledge file")
    kb = p.add_subparsers(dest="action", required=True)
    k = kb.add_parser("init")
    k.add_argument("--overwrite", action="store_true")
    k = kb.add_parser("add-product")
    k.add_argument("name")
    k.add_argument("--category", default="wine")
    k.add_argument("--description")
    k.add_argument("--price", type=float)
    k.add_argument("--image-url")
    k = kb.add_parser("add-event")
    k.add_argument("name")
    k.add_argument("date")
    k = kb.add_parser("record")
    k.add_argument("theme")
    k.add_argument("--engagement", default="high")
    kb.add_parser("inventory")
    kb.add_parser("learning")
    p.set_defaults(func=cmd_knowledge)

    p = sub.add_parser("deploy", help="Deploy the bot to Render or the Instagram workflow to N8N")
    p.add_argument("target", choices=["bot", "workflow"])
    p.add_argument("--repo", help="GitHub repository URL for the bot service")
    p.add_argument("--branch", default="main")
    p.add_argument("--plan", default="starter")
    p.set_defaults(func=cmd_deploy)

    p = sub.add_parser("analytics", help="Lightspeed sales analytics")
    p.add_argument(
        "query", choices=["test", "today", "repeat", "at-risk", "vip", "segments", "reengage", "dashboard", "export"]
    )
    p.add_argument("--format", default="json", choices=["json", "csv"], help="Export format")
    p.set_defaults(func=cmd_analytics)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    args = build_parser().parse_args(argv)
    try:
        return asyncio.run(args.func(args))
    except (ValueError, FileNotFoundError) as e:
        logger.error(str(e))
        print(f"❌ {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
