from app.services.access_aggregator import AccessAggregator
from app.services.access_log_service import AccessLogService
from app.services.chat_message_service import ChatMessageService
from app.services.conversation_resolver import ConversationResolver
from app.services.conversation_service import ConversationService
from app.services.lost_item_service import LostItemService
from app.services.message_channel import MessageChannel
from app.services.verification_scorer import VerificationScorer

__all__ = [
    "AccessAggregator",
    "AccessLogService",
    "ChatMessageService",
    "ConversationResolver",
    "ConversationService",
    "LostItemService",
    "MessageChannel",
    "VerificationScorer",
]
