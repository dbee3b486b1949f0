"""Registry artifact persistence.

The artifact is replaced wholesale on every build. Writes go to a temporary
file in the destination directory which is then renamed over the target, so
readers see either the old document or the new one, never a partial file.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path

from plugin_registry.errors import ArtifactWriteFailure
from plugin_registry.registry.models import RegistryDocument


def write_registry(document: RegistryDocument, path: str | Path) -> Path:
    """Serialize *document* as pretty-printed JSON at *path*.

    Missing parent directories are created.

    Raises:
        ArtifactWriteFailure: The directory or file could not be written.
            Any existing artifact is left as it was.
    """
    target = Path(path)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ArtifactWriteFailure(target, str(e)) from e

    tmp_path = None
    try:
        # ASCII escapes keep lone surrogates from manifests writable
        payload = json.dumps(document.to_dict(), indent=2, ensure_ascii=True)
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=target.parent,
            prefix=f".{target.name}.",
            suffix=".tmp",
            delete=False,
        ) as f:
            tmp_path = Path(f.name)
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        # mkstemp creates files 0600; the registry is meant to be published
        os.chmod(tmp_path, 0o644)
        os.replace(tmp_path, target)
    except (OSError, ValueError) as e:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)
        raise ArtifactWriteFailure(target, str(e)) from e

    return target


def load_registry(path: str | Path) -> RegistryDocument:
    """Read a previously written registry artifact."""
    with open(path, encoding="utf-8") as f:
        return RegistryDocument.from_dict(json.load(f))
