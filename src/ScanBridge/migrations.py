"""Schema migration helpers for bridge input documents.

The Coverity input document handed to the bridge changed shape in bridge
3.9.0. Newer bridges read a ``prcomment`` object::

    {"data": {"coverity": {"prcomment": {"enabled": true, "impacts": ["HIGH"]}}}}

while older bridges only understand the legacy automation flag::

    {"data": {"coverity": {"automation": {"prcomment": true}}}}

Documents are always written in the new shape. Once the installed bridge
version is known, :func:`reconcile_coverity_config` downgrades the document in
place when that bridge predates the threshold. There is no upgrade path; the
``impacts`` list has no legacy equivalent and is dropped.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, MutableMapping, Tuple, Union

from .errors import ConfigDocumentError
from .versioning import is_version_less

__all__ = [
    "COVERITY_PRCOMMENT_THRESHOLD",
    "downgrade_coverity_prcomment",
    "reconcile_coverity_config",
]

LOGGER = logging.getLogger(__name__)

#: First bridge release that reads ``data.coverity.prcomment``.
COVERITY_PRCOMMENT_THRESHOLD = "3.9.0"


def _coverity_section(document: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    data = document.get("data")
    if not isinstance(data, MutableMapping):
        raise ConfigDocumentError("bridge input document has no 'data' object")
    coverity = data.get("coverity")
    if not isinstance(coverity, MutableMapping):
        raise ConfigDocumentError("bridge input document has no 'data.coverity' object")
    return coverity


def downgrade_coverity_prcomment(
    document: MutableMapping[str, Any],
    installed_bridge_version: str,
    threshold_version: str = COVERITY_PRCOMMENT_THRESHOLD,
) -> Tuple[MutableMapping[str, Any], bool]:
    """Rewrite ``data.coverity.prcomment`` into the legacy automation flag.

    Args:
        document: Parsed bridge input document; modified in place.
        installed_bridge_version: Version reported by the installed bridge.
        threshold_version: First version that understands the new shape.

    Returns:
        ``(document, changed)`` where ``changed`` reports whether a rewrite
        happened.

    Raises:
        ConfigDocumentError: If ``data.coverity`` is missing.
    """
    coverity = _coverity_section(document)
    prcomment = coverity.get("prcomment")
    if not isinstance(prcomment, MutableMapping):
        return document, False
    if not is_version_less(installed_bridge_version, threshold_version):
        return document, False

    automation = coverity.get("automation")
    if not isinstance(automation, MutableMapping):
        automation = {}
    automation["prcomment"] = prcomment.get("enabled")
    coverity["automation"] = automation
    del coverity["prcomment"]
    return document, True


def _write_json_atomic(path: Path, payload: Dict[str, Any]) -> None:
    temp_path = path.with_suffix(path.suffix + ".tmp")
    try:
        with temp_path.open("w", encoding="utf-8") as handle:
            json.dump(payload, handle)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp_path, path)
    finally:
        temp_path.unlink(missing_ok=True)


def reconcile_coverity_config(
    document_path: Union[str, Path],
    installed_bridge_version: str,
    threshold_version: str = COVERITY_PRCOMMENT_THRESHOLD,
) -> bool:
    """Normalize the Coverity input file for the installed bridge.

    The file is parsed and transformed fully in memory before anything is
    written, and the write goes through a sibling temp file, so a failure
    never leaves a truncated document behind.

    Args:
        document_path: Path to the JSON input file passed to ``--input``.
        installed_bridge_version: Version reported by the installed bridge.
        threshold_version: First version that understands the new shape.

    Returns:
        ``True`` if the file was rewritten.

    Raises:
        json.JSONDecodeError: If the file is not valid JSON.
        ConfigDocumentError: If ``data.coverity`` is missing.
        OSError: On read or write failures.
    """
    path = Path(document_path)
    document = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(document, dict):
        raise ConfigDocumentError("bridge input document must be a JSON object", path=str(path))
    try:
        _, changed = downgrade_coverity_prcomment(
            document, installed_bridge_version, threshold_version
        )
    except ConfigDocumentError as exc:
        exc.path = str(path)
        raise

    if not changed:
        LOGGER.debug(
            "coverity input left unchanged",
            extra={"path": str(path), "bridge_version": installed_bridge_version},
        )
        return False

    _write_json_atomic(path, document)
    LOGGER.info(
        "Bridge CLI %s predates %s; rewrote coverity prcomment as automation.prcomment",
        installed_bridge_version,
        threshold_version,
    )
    return True
