"""
Crawler plugins.
"""

from scaledown.plugins.base import CrawlerPlugin
from scaledown.plugins.scaledown import (
    PLUGIN_NAME,
    ScaleDownPlugin,
    load_index_mapping,
)

__all__ = [
    "CrawlerPlugin",
    "PLUGIN_NAME",
    "ScaleDownPlugin",
    "load_index_mapping",
]
