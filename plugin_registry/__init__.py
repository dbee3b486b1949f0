"""Plugin Registry Builder.

Discovers plugin manifests published in GitHub repositories tagged with a
topic label, validates them, and aggregates the survivors into a single
registry document.
"""

__version__ = "0.1.0"

REGISTRY_SCHEMA_VERSION = "1.0.0"
