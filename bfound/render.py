"""Markdown-subset to HTML for note previews and the public share page.

The renderer is a fixed, ordered list of regex substitutions, not a parser.
Input is HTML-escaped first, so anything a note author types renders as text;
only the markup produced here reaches the page. Supported: ``#``-``###``
headers, ``**bold**``, ``*italic*``, ``__underline__``, images, links, ``-`` and
numbered list items, fenced and inline code, ``>`` quotes and ``@mentions``.
"""

from __future__ import annotations

import html
import re

_CODE_BLOCK = re.compile(r"```(?:[\w+-]*\n)?(.*?)```", re.S)
_INLINE_CODE = re.compile(r"`([^`\n]+)`")
_TOKEN = re.compile(r"\x00([BI])(\d+)\x00")
MENTION_RE = re.compile(r"(?<![\w/])@(\w+)")

_SUBSTITUTIONS: list[tuple[re.Pattern, str]] = [
    (re.compile(r"^### (.*)$", re.M), r"<h3>\1</h3>"),
    (re.compile(r"^## (.*)$", re.M), r"<h2>\1</h2>"),
    (re.compile(r"^# (.*)$", re.M), r"<h1>\1</h1>"),
    (re.compile(r"\*\*(.+?)\*\*"), r"<strong>\1</strong>"),
    (re.compile(r"\*(.+?)\*"), r"<em>\1</em>"),
    (re.compile(r"__(.+?)__"), r"<u>\1</u>"),
    (re.compile(r"^[ \t]*(?:-|\d+\.) (.*)$", re.M), r"<li>\1</li>"),
    (re.compile(r"^&gt; (.*)$", re.M), r"<blockquote>\1</blockquote>"),
    (MENTION_RE, r'<span class="mention">@\1</span>'),
]

_IMAGE = re.compile(r"!\[([^\]]*)\]\(([^)\s]+)\)")
_LINK = re.compile(r"\[([^\]]+)\]\(([^)\s]+)\)")
_UNSAFE_SCHEME = re.compile(r"^\s*(javascript|vbscript|data):", re.I)
_BLOCK_LINE = re.compile(r"^(<h[1-3]>|<blockquote>|\x00B\d+\x00$)")


def _image(m: re.Match) -> str:
    alt, src = m.group(1), m.group(2)
    if _UNSAFE_SCHEME.match(html.unescape(src)):
        return alt
    return f'<img src="{src}" alt="{alt}" style="max-width: 100%;" />'


def _link(m: re.Match) -> str:
    text, href = m.group(1), m.group(2)
    if _UNSAFE_SCHEME.match(html.unescape(href)):
        return text
    return f'<a href="{href}" target="_blank" rel="noopener noreferrer">{text}</a>'


def _paragraphs(text: str) -> str:
    out: list[str] = []
    for chunk in re.split(r"\n[ \t]*\n", text.strip()):
        para: list[str] = []
        items: list[str] = []
        for line in chunk.split("\n"):
            if line.startswith("<li>"):
                _flush_paragraph(out, para)
                items.append(line)
            elif _BLOCK_LINE.match(line):
                _flush_paragraph(out, para)
                _flush_list(out, items)
                out.append(line)
            elif line.strip():
                _flush_list(out, items)
                para.append(line)
        _flush_paragraph(out, para)
        _flush_list(out, items)
    return "\n".join(out)


def _flush_paragraph(out: list[str], para: list[str]) -> None:
    if para:
        out.append("<p>" + "<br />".join(para) + "</p>")
        para.clear()


def _flush_list(out: list[str], items: list[str]) -> None:
    if items:
        out.append("<ul>" + "".join(items) + "</ul>")
        items.clear()


def render_markdown(text: str) -> str:
    """Render a note body to an HTML fragment safe to show to any viewer."""
    if not text:
        return ""
    stash: list[str] = []

    def keep(kind: str, markup: str) -> str:
        stash.append(markup)
        return f"\x00{kind}{len(stash) - 1}\x00"

    # NUL delimits stash tokens, so it never survives from user text
    out = html.escape(text.replace("\r\n", "\n").replace("\x00", ""))
    out = _CODE_BLOCK.sub(lambda m: keep("B", f"<pre><code>{m.group(1)}</code></pre>"), out)
    out = _INLINE_CODE.sub(lambda m: keep("I", f"<code>{m.group(1)}</code>"), out)
    out = _IMAGE.sub(_image, out)
    out = _LINK.sub(_link, out)
    for pattern, repl in _SUBSTITUTIONS:
        out = pattern.sub(repl, out)
    out = _paragraphs(out)
    return _TOKEN.sub(lambda m: stash[int(m.group(2))], out)


def extract_mentions(text: str) -> list[str]:
    """Usernames mentioned with ``@name``, in order of first appearance."""
    seen: list[str] = []
    for name in MENTION_RE.findall(text or ""):
        if name not in seen:
            seen.append(name)
    return seen


def plain_excerpt(text: str, max_length: int = 150) -> str:
    """Strip emphasis markers and cut to ``max_length`` characters for cards."""
    stripped = re.sub(r"\*\*(.*?)\*\*", r"\1", text or "")
    stripped = re.sub(r"\*(.*?)\*", r"\1", stripped)
    if len(stripped) <= max_length:
        return stripped
    return stripped[:max_length] + "..."
