"""
Request fingerprinting for the response cache.

The key is a lossy approximation of the request: only the last few messages
and a prefix of the system prompt are included, plus content hashes of any
attached file and of the raw prompt. Exact duplicate submissions always
produce the same key.
"""

import hashlib
import json
from typing import Any

from deck_orchestrator.models.request_models import GenerationRequest


def _digest(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        payload = value
    else:
        payload = json.dumps(value, sort_keys=True, default=str, ensure_ascii=False)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def compute_cache_key(
    request: GenerationRequest,
    message_window: int = 2,
    system_prompt_prefix_chars: int = 100,
) -> str:
    """
    Compute the cache fingerprint for a request.

    Args:
        request: Request to fingerprint
        message_window: Number of trailing messages included
        system_prompt_prefix_chars: Length of the system prompt prefix included

    Returns:
        Hex sha256 of the canonical JSON fingerprint
    """
    window = request.messages[-message_window:] if message_window > 0 else []
    fingerprint = {
        "messages": [{"role": m.role, "content": m.content} for m in window],
        "system": request.system_prompt[:system_prompt_prefix_chars],
        "has_existing_document": request.is_modification,
        "file_hash": _digest(request.file_attachment),
        "prompt_hash": _digest(request.prompt),
    }
    canonical = json.dumps(fingerprint, sort_keys=True, ensure_ascii=False, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
