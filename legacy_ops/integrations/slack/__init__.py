# Slack integration module
from legacy_ops.integrations.slack.client import SlackClient, build_report_blocks

__all__ = ["SlackClient", "build_report_blocks"]
