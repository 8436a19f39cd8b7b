# Slack assistant bot module
from legacy_ops.bot.assistant import ClaudeAssistant, get_analytics_data, needs_analytics
from legacy_ops.bot.conversation_store import ConversationStore, session_key

__all__ = ["ClaudeAssistant", "ConversationStore", "get_analytics_data", "needs_analytics", "session_key"]
