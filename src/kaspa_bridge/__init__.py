"""
Kaspa template bridge package.

Polls a Kaspa node for block templates and relays them to a Redis channel.
"""

from .bridge import TemplateBridge
from .config import BridgeConfig
from .models import BlockHeader, BlockTemplate
from .template_store import TemplateStore

__all__ = ["BridgeConfig", "TemplateBridge", "TemplateStore", "BlockTemplate", "BlockHeader"]
__version__ = "0.1.0"
