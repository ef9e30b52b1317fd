"""
Plugin registry for managing extraction plugins.
"""
import logging
from typing import Dict, Optional
from .base import ExtractionPlugin, PluginResult

logger = logging.getLogger(__name__)

# Global registry instance
_registry: Optional['PluginRegistry'] = None


class PluginRegistry:
    """Registry of source extraction plugins, keyed by source id"""

    def __init__(self):
        self._plugins_by_name: Dict[str, ExtractionPlugin] = {}

    def register(self, plugin: ExtractionPlugin):
        """Register a plugin"""
        if plugin.name in self._plugins_by_name:
            logger.warning(f"Plugin {plugin.name} already registered, replacing")

        self._plugins_by_name[plugin.name] = plugin
        logger.debug(f"Registered plugin: {plugin.name} ({plugin.origin})")

    def get_plugin(self, name: str) -> Optional[ExtractionPlugin]:
        """Get plugin by source id"""
        return self._plugins_by_name.get(name)

    def find_plugin(self, url: str) -> Optional[ExtractionPlugin]:
        """Find the plugin whose site a URL belongs to"""
        for plugin in self._plugins_by_name.values():
            if plugin.can_handle(url):
                logger.debug(f"Selected plugin: {plugin.name} for {url[:80]}")
                return plugin
        return None

    def extract(
        self,
        html: str,
        source_id: str,
        base_url: Optional[str] = None
    ) -> PluginResult:
        """
        Extract jobs with the plugin registered for a source.

        Never raises: an unknown source or a plugin crash gives an empty result.

        Args:
            html: HTML content
            source_id: Source identifier selecting the plugin
            base_url: Page URL, for logging

        Returns:
            PluginResult with extracted jobs
        """
        plugin = self.get_plugin(source_id)

        if not plugin:
            logger.warning(f"No plugin registered for source {source_id!r}")
            return PluginResult(
                jobs=[],
                message=f"No plugin for source {source_id}"
            )

        try:
            return plugin.extract(html, base_url)
        except Exception as e:
            logger.error(f"Plugin {plugin.name} extraction error: {e}", exc_info=True)
            return PluginResult(
                jobs=[],
                message=f"Extraction error: {str(e)}"
            )


def get_plugin_registry() -> PluginRegistry:
    """Get or create the global plugin registry"""
    global _registry
    if _registry is None:
        _registry = PluginRegistry()
        _register_builtin_plugins(_registry)
    return _registry


def _register_builtin_plugins(registry: PluginRegistry):
    """Register all built-in plugins"""
    from .naukri import NaukriPlugin
    from .remoteok import RemoteOKPlugin
    from .wellfound import WellfoundPlugin

    registry.register(NaukriPlugin())
    registry.register(RemoteOKPlugin())
    registry.register(WellfoundPlugin())
