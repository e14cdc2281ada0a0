"""
Template identity and cache key derivation.

All functions here are pure. Hosts that want a context id derived from
request state call ``context_id_from_request_uri`` or
``context_id_from_command`` themselves and pass the result in; nothing in
the library reads request globals.
"""

import hashlib

IDENTITY_LENGTH = 32

# Characters that must not reach a file name
REQUEST_HAZARDS = '\\/%?=!:;*"<>|'
COMMAND_HAZARDS = "\\/%?=!:;"
FILLER = "-"


def content_identity(content: str | bytes) -> str:
    """
    Compute the stable identity of a template's content.

    Args:
        content: Raw template source

    Returns:
        Fixed-length hex digest, equal for equal content
    """
    if isinstance(content, str):
        content = content.encode("utf-8")
    return hashlib.sha256(content).hexdigest()[:IDENTITY_LENGTH]


def resolve_compile_key(explicit: str | None, identity: str) -> str:
    """Return the explicit compile key if given, else the content identity."""
    if explicit is not None:
        return explicit
    return identity


def sanitize_context(
    value: str,
    hazards: str = REQUEST_HAZARDS,
    filler: str = FILLER,
) -> str:
    """
    Replace path-hazardous characters in a context id.

    Args:
        value: Raw context string
        hazards: Characters to replace
        filler: Replacement character

    Returns:
        Sanitized context string of the same length
    """
    return value.translate(str.maketrans(hazards, filler * len(hazards)))


def resolve_cache_key(
    compile_key: str,
    explicit_context: str | None = None,
    ambient_context: str | None = None,
) -> str:
    """
    Build the cache key for a rendered output entry.

    The compile key is always the prefix so that entries of one template
    family never collide with another's, whatever the context strings.

    Args:
        compile_key: Key of the template's compiled artifact
        explicit_context: Caller-supplied context id
        ambient_context: Context id derived by the host, used when no
            explicit one is given

    Returns:
        ``compile_key`` followed by the sanitized context id
    """
    context = explicit_context if explicit_context is not None else ambient_context
    if not context:
        return compile_key
    return compile_key + sanitize_context(context)


def context_id_from_request_uri(uri: str) -> str:
    """Derive a context id from a request URI such as ``/blog/?page=2``."""
    return sanitize_context(uri, REQUEST_HAZARDS)


def context_id_from_command(script: str, argv: list[str]) -> str:
    """Derive a context id from a script path and its command line arguments."""
    return sanitize_context("-".join([script, *argv]), COMMAND_HAZARDS)
