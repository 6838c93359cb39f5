"""
System prompt construction for chat requests.
"""

from typing import Optional

SYSTEM_PREAMBLE = "You are a helpful AI assistant."

CONTEXT_PREAMBLE = f"{SYSTEM_PREAMBLE} Use the following context:\n\n"


def build_system_prompt(context: Optional[str] = None) -> str:
    """Fixed preamble, with the pre-rendered workspace context appended if any."""
    if context:
        return f"{CONTEXT_PREAMBLE}{context}"
    return SYSTEM_PREAMBLE
