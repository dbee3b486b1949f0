"""Remote sources that plugin manifests are discovered and fetched from."""
