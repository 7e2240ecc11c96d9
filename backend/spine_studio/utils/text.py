import re


def strip_code_fences(content: str) -> str:
    """Strip markdown code fences an LLM may wrap around its answer."""
    content = content.strip()
    if content.startswith("```"):
        content = content.split("\n", 1)[1] if "\n" in content else content[3:]
        if content.endswith("```"):
            content = content[:-3]
        content = content.strip()
    return content


def mentions(text: str, phrase: str) -> bool:
    """Whether ``phrase`` appears in ``text`` as whole words, allowing a plural ``s``.

    "hat" matches "hats" but not "that"; "cap" does not match "cape".
    """
    return re.search(rf"\b{re.escape(phrase)}s?\b", text) is not None
