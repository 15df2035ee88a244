from __future__ import annotations


SHORT_DESCRIPTION_MAX_WORDS = 50

SHORTEN_SYSTEM_PROMPT = (
    "You are a helpful assistant that shortens text. Condense the following text to a maximum of "
    f"{SHORT_DESCRIPTION_MAX_WORDS} words while preserving the key information:"
)


def build_shorten_messages(long_description: str) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": SHORTEN_SYSTEM_PROMPT},
        {"role": "user", "content": long_description},
    ]
