"""
Source adapter plugins. Each subpackage is scanned by core.plugin_loader.
"""
