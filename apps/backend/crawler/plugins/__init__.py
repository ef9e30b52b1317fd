"""
Extraction plugin system.

Plugins provide source-specific extraction logic:
- One plugin per supported listing site, selected by source id
- Structural (CSS selector) parsing of rendered page snapshots
- Per-element failure isolation
"""

from .base import ExtractionPlugin, PluginResult
from .registry import PluginRegistry, get_plugin_registry

__all__ = [
    'ExtractionPlugin',
    'PluginResult',
    'PluginRegistry',
    'get_plugin_registry'
]
