"""contact-shield: contact-information leak detection for marketplace chat."""

from .engine import ContactFilter, FilterConfig
from .buffer import BufferStore
from .middleware import ChannelFilter
from .config import create_filter, load_config, load_from_yaml
from .types import ConversationBuffer, FilterResult, PatternHit, RoleContext

__all__ = [
    "ContactFilter", "FilterConfig",
    "BufferStore",
    "ChannelFilter",
    "create_filter", "load_config", "load_from_yaml",
    "ConversationBuffer", "FilterResult", "PatternHit", "RoleContext",
]
__version__ = "0.1.0"
