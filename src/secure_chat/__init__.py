__version__ = "0.1.0"

from secure_chat.app_config import ChatbotConfig, DispatchMode, RateLimitConfig, parse_chatbot_config
from secure_chat.bootstrap import build_widget
from secure_chat.models import ConnectionStatus, Message, MessageOrigin, MessageStatus, Sender, SessionSnapshot
from secure_chat.services.session_controller import SendOutcome, SessionController
from secure_chat.widget import ChatWidget

__all__ = [
    "ChatWidget",
    "ChatbotConfig",
    "ConnectionStatus",
    "DispatchMode",
    "Message",
    "MessageOrigin",
    "MessageStatus",
    "RateLimitConfig",
    "Sender",
    "SendOutcome",
    "SessionController",
    "SessionSnapshot",
    "build_widget",
    "parse_chatbot_config",
]
