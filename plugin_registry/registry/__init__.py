"""Registry — aggregation and persistence layer for discovered plugins.

The registry provides:
- Models: discovery items, normalized entries, the registry document
- Assembly: discovery → fetch → validate → accumulate
- Persistence: atomic write of the registry artifact
"""
