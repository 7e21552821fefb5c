"""Deterministic fingerprint of an agent's static context."""

from __future__ import annotations

import hashlib
from collections.abc import Iterable


def static_context_fingerprint(
    static_prompt: str,
    tool_names: Iterable[str],
    *,
    model: str = "",
) -> str:
    """Digest of model, full prompt text and the sorted, de-duplicated tool names.

    Any prompt edit, tool added/removed, or model switch yields a new value.
    Tool order does not matter.
    """
    names = sorted({n for n in tool_names if n})
    h = hashlib.sha256()
    for part in (model, static_prompt, "\n".join(names)):
        data = part.encode("utf-8")
        # Length-prefix each part so boundaries cannot shift between fields.
        h.update(len(data).to_bytes(8, "big"))
        h.update(data)
    return h.hexdigest()


__all__ = ["static_context_fingerprint"]
