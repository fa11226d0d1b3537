from app.models.access_log import AccessLog
from app.models.chat_message import AI_SYSTEM_SENDER_ID, ChatMessage
from app.models.conversation import Conversation
from app.models.lost_item import LostItem
from app.models.profile import Profile

__all__ = [
    "AI_SYSTEM_SENDER_ID",
    "AccessLog",
    "ChatMessage",
    "Conversation",
    "LostItem",
    "Profile",
]
