"""Domain layer: message markers, capability interfaces, errors.

This layer depends only on stdlib.
It must never import from pipeline, dispatch, plugins, or config.
"""
