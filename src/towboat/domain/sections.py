"""Tag sections — extract the active build tag's blocks, strip the rest.

A section is a marker pair plus everything between them::

    # {linux-
    alias ls='ls --color=auto'
    # -linux}

Processing is two passes and the order is load-bearing: sections for the
active tag are unwrapped first, then every remaining section (any tag) is
removed. Running the generic pass first would delete the active tag's own
sections.

An opening marker without a matching closing marker never matches and is
left in place verbatim. Sections do not nest.
"""

from __future__ import annotations

import re

# Tag names: one or more characters, no closing brace, no line break.
_TAG_CHARS = r"[^}\n]+"

_ANY_OPEN_RE = re.compile(rf"# \{{{_TAG_CHARS}-")

_ANY_SECTION_RE = re.compile(
    rf"# \{{(?P<tag>{_TAG_CHARS}?)-[ \t]*\r?\n.*?# -(?P=tag)\}}[ \t]*(?:\r?\n)?",
    re.DOTALL,
)


def _section_pattern(tag: str) -> re.Pattern[str]:
    """Compile the section pattern for one literal *tag*."""
    escaped = re.escape(tag)
    return re.compile(
        rf"# \{{{escaped}-[ \t]*\r?\n(?P<body>.*?)# -{escaped}\}}[ \t]*(?:\r?\n)?",
        re.DOTALL,
    )


def process(content: str, active_tag: str) -> str:
    """Return *content* with *active_tag* sections unwrapped and all others removed.

    Text outside any section is passed through unchanged. The newline that
    ends a closing marker line is consumed with the marker, so removing a
    section never leaves a blank line behind.

    Examples:
        >>> process("pre\\n# {a-\\nX\\n# -a}\\n# {b-\\nY\\n# -b}\\npost", "a")
        'pre\\nX\\npost'
        >>> process("pre\\n# {a-\\nX\\n# -a}\\npost", "b")
        'pre\\npost'
    """
    if not active_tag:
        msg = "active_tag must be a non-empty string"
        raise ValueError(msg)
    unwrapped = _section_pattern(active_tag).sub(lambda m: m.group("body"), content)
    return _ANY_SECTION_RE.sub("", unwrapped)


def has_any_section(content: str) -> bool:
    """True if *content* carries an opening marker for any tag."""
    return _ANY_OPEN_RE.search(content) is not None


def has_section(content: str, tag: str) -> bool:
    """True if *content* carries an opening marker for *tag* specifically.

    The marker has to end its line, so under tag ``a`` an ``# {a-b-`` line
    (a section for ``a-b``) does not count.
    """
    pattern = rf"# \{{{re.escape(tag)}-[ \t]*(?:\r?\n|\Z)"
    return re.search(pattern, content) is not None

