"""
Extraction Strategies - References and Plain Text
=================================================

Two pluggable capabilities used by the validator and the synchronizer:

1. ReferenceExtractor - finds cross-document links in a document body
2. MarkupStripper - reduces Markdown/HTML to plain prose for previews

Both are regex based. Swapping in a real HTML/Markdown parser only needs a
new class with the same method; the validator and synchronizer do not care.

Reference Types Detected:
-------------------------
1. Markdown Links: [link text](../path/file.md#anchor)
2. HTML Anchors:   <a href="docs/install/">Install</a>

Images, external URLs (http:, mailto:, //cdn...) and same-page "#anchor"
links are not cross-document references and are ignored silently.

Known Limitations:
------------------
- Fragments are stripped before resolution; whether the anchor exists in
  the target page is not checked
- Links generated by templates at build time are invisible here; literal
  template expressions in a target are reported as parse warnings
"""

from __future__ import annotations

import html
import posixpath
import re
from typing import Protocol

from sitesync.models.document import Document, LinkParseWarning, Reference

_SCHEME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*:")
_PAGE_SUFFIXES = (".md", ".html", ".htm")
_INDEX_PAGES = {"index.md", "index.html", "index.htm"}


class ReferenceExtractor(Protocol):
    def extract(self, document: Document) -> tuple[list[Reference], list[LinkParseWarning]]:
        ...


class MarkupStripper(Protocol):
    def strip(self, body: str) -> str:
        ...


class LinkTargetResolver:
    """
    Maps an href as written into the store's id scheme.

    Resolution Strategy:
    --------------------
    1. External schemes and same-page fragments -> None (not a reference)
    2. "/"-rooted targets resolve from the site root, others from the
       source document's directory; ".." above the root is clamped
    3. The docs URL prefix ("docs/"), trailing slashes, index pages and
       page suffixes are stripped
    4. An empty path is the Hub

    Examples (hub_id="index", prefix="docs"):
        "docs/install/"        -> "install"
        "/docs/guides/setup"   -> "guides/setup"
        "quick-start.md"       -> "quick-start" (from a top-level section)
        "../index.html"        -> "index"
    """

    def __init__(self, hub_id: str = "index", docs_url_prefix: str = "docs") -> None:
        self.hub_id = hub_id
        self.docs_url_prefix = docs_url_prefix.strip("/")

    def resolve(self, source_id: str, raw_target: str) -> tuple[str, str | None] | None:
        target = raw_target.strip()
        if _SCHEME_PATTERN.match(target) or target.startswith("//"):
            return None

        path, _, fragment = target.partition("#")
        path = path.split("?", 1)[0]
        if not path:
            return None

        if path.startswith("/"):
            joined = path.lstrip("/")
        else:
            joined = posixpath.join(posixpath.dirname(source_id), path)

        normalized = posixpath.normpath(joined) if joined else ""
        parts = [p for p in normalized.split("/") if p not in ("", ".", "..")]

        prefix = self.docs_url_prefix
        if prefix and len(parts) > 1 and parts[0] == prefix:
            parts = parts[1:]
        if parts and parts[-1].lower() in _INDEX_PAGES:
            parts = parts[:-1]
        if parts:
            last = parts[-1]
            for suffix in _PAGE_SUFFIXES:
                if last.lower().endswith(suffix):
                    parts[-1] = last[: -len(suffix)]
                    break

        target_id = "/".join(p for p in parts if p)
        return (target_id or self.hub_id, fragment or None)


class MarkupReferenceExtractor:
    """
    Extracts Markdown and HTML hyperlinks.

    Malformed syntax becomes a LinkParseWarning instead of a Reference:
    empty targets, targets with whitespace or template braces, Markdown
    links missing their closing parenthesis, and <a> tags whose href
    cannot be parsed.
    """

    # Regex: [link text](url) - captures link text and URL, skips images
    MARKDOWN_LINK_PATTERN: re.Pattern[str] = re.compile(r"(?<!!)\[([^\]\n]*)\]\(([^)\n]*)\)")

    # Regex: [link text](url... with no closing parenthesis on the line
    UNTERMINATED_MARKDOWN_LINK_PATTERN: re.Pattern[str] = re.compile(
        r"(?<!!)\[([^\]\n]*)\]\((?![^)\n]*\))[^\n]*"
    )

    # Regex: <a ...> opening tag
    ANCHOR_TAG_PATTERN: re.Pattern[str] = re.compile(r"<a\b([^>]*)>", re.IGNORECASE)
    ANCHOR_CLOSE_PATTERN: re.Pattern[str] = re.compile(r"</a\s*>", re.IGNORECASE)
    HREF_PATTERN: re.Pattern[str] = re.compile(
        r"""\bhref\s*=\s*(?:"([^"]*)"|'([^']*)')""", re.IGNORECASE
    )
    HREF_PRESENT_PATTERN: re.Pattern[str] = re.compile(r"\bhref\b", re.IGNORECASE)

    # Markdown link title: [text](url "title")
    TITLED_TARGET_PATTERN: re.Pattern[str] = re.compile(r"""^(\S+)\s+(?:"[^"]*"|'[^']*')$""")

    CODE_FENCE_PATTERN: re.Pattern[str] = re.compile(r"^(```|~~~).*?^\1[^\n]*$", re.MULTILINE | re.DOTALL)
    INLINE_CODE_PATTERN: re.Pattern[str] = re.compile(r"`[^`\n]+`")
    TAG_PATTERN: re.Pattern[str] = re.compile(r"<[^>]+>")

    def __init__(self, resolver: LinkTargetResolver) -> None:
        self.resolver = resolver

    @classmethod
    def _mask_code(cls, body: str) -> str:
        """Blank out code so example links are not scanned. Line numbers are preserved."""
        def blank(match: re.Match[str]) -> str:
            return re.sub(r"[^\n]", " ", match.group(0))

        body = cls.CODE_FENCE_PATTERN.sub(blank, body)
        return cls.INLINE_CODE_PATTERN.sub(blank, body)

    @staticmethod
    def _line_of(body: str, offset: int) -> int:
        return body.count("\n", 0, offset) + 1

    def _clean_target(self, raw: str) -> tuple[str | None, str | None]:
        """Return (target, None) or (None, reason) for malformed syntax."""
        target = raw.strip()
        if target.startswith("<") and target.endswith(">"):
            target = target[1:-1].strip()
        if not target:
            return None, "empty link target"
        if "{{" in target or "{%" in target:
            return None, "template expression in link target"
        if any(ch.isspace() for ch in target):
            titled = self.TITLED_TARGET_PATTERN.match(target)
            if not titled:
                return None, "whitespace in link target"
            target = titled.group(1)
        return target, None

    def _add(
        self,
        document: Document,
        raw_target: str,
        anchor_text: str,
        line: int,
        snippet: str,
        references: list[Reference],
        warnings: list[LinkParseWarning],
    ) -> None:
        target, reason = self._clean_target(raw_target)
        if target is None:
            warnings.append(LinkParseWarning(document.id, snippet, reason or "unparseable", line))
            return

        resolved = self.resolver.resolve(document.id, target)
        if resolved is None:
            return
        target_id, fragment = resolved
        references.append(
            Reference(
                source_id=document.id,
                target_id=target_id,
                anchor_text=anchor_text,
                raw_target=target,
                fragment=fragment,
                line=line,
            )
        )

    def extract(self, document: Document) -> tuple[list[Reference], list[LinkParseWarning]]:
        body = self._mask_code(document.body)
        references: list[Reference] = []
        warnings: list[LinkParseWarning] = []

        # 1. Markdown links: [text](url)
        for match in self.MARKDOWN_LINK_PATTERN.finditer(body):
            link_text, link_url = match.groups()
            self._add(
                document,
                link_url,
                link_text.strip(),
                self._line_of(body, match.start()),
                match.group(0),
                references,
                warnings,
            )

        for match in self.UNTERMINATED_MARKDOWN_LINK_PATTERN.finditer(body):
            warnings.append(
                LinkParseWarning(
                    document.id,
                    match.group(0)[:120],
                    "unterminated markdown link",
                    self._line_of(body, match.start()),
                )
            )

        # 2. HTML anchors: <a href="url">text</a>
        for match in self.ANCHOR_TAG_PATTERN.finditer(body):
            attrs = match.group(1)
            line = self._line_of(body, match.start())
            href = self.HREF_PATTERN.search(attrs)
            if href is None:
                if self.HREF_PRESENT_PATTERN.search(attrs):
                    warnings.append(LinkParseWarning(document.id, match.group(0)[:120], "unparseable href attribute", line))
                # <a name="..."> and friends are not links
                continue

            close = self.ANCHOR_CLOSE_PATTERN.search(body, match.end())
            inner = body[match.end():close.start()] if close else ""
            anchor_text = html.unescape(" ".join(self.TAG_PATTERN.sub(" ", inner).split()))
            raw_target = html.unescape(href.group(1) if href.group(1) is not None else href.group(2))
            self._add(document, raw_target, anchor_text, line, match.group(0)[:120], references, warnings)

        return references, warnings


class MarkdownStripper:
    """
    Reduces Markdown (and simple HTML) to plain paragraphs.

    Removes front matter, headings, code fences, inline code markers,
    emphasis markers, images, HTML tags and comments, list bullets and
    blockquote markers. Links keep their anchor text. Paragraph breaks
    (blank lines, block-level closing tags) are preserved.
    """

    FRONT_MATTER = re.compile(r"\A---\s*\n.*?\n---\s*(\n|\Z)", re.DOTALL)
    CODE_FENCES = re.compile(r"^(```|~~~).*?^\1[^\n]*$", re.MULTILINE | re.DOTALL)
    HTML_COMMENTS = re.compile(r"<!--.*?-->", re.DOTALL)
    HTML_RAW_BLOCKS = re.compile(r"<(script|style|pre|code)\b[^>]*>.*?</\1\s*>", re.DOTALL | re.IGNORECASE)
    HTML_HEADINGS = re.compile(r"<h([1-6])\b[^>]*>.*?</h\1\s*>", re.DOTALL | re.IGNORECASE)
    HTML_BLOCK_BREAKS = re.compile(
        r"</(?:p|div|section|article|li|ul|ol|blockquote|table|tr|header|footer)\s*>|<br\s*/?>",
        re.IGNORECASE,
    )
    HTML_TAGS = re.compile(r"<[^>]+>")
    HEADINGS = re.compile(r"^\s{0,3}#{1,6}\s+.*$", re.MULTILINE)
    SETEXT_UNDERLINES = re.compile(r"^\s*(=+|-{3,})\s*$", re.MULTILINE)
    IMAGES = re.compile(r"!\[([^\]]*)\]\([^)]*\)")
    LINKS = re.compile(r"\[([^\]]+)\]\([^)]*\)")
    INLINE_CODE = re.compile(r"`([^`]+)`")
    BOLD = re.compile(r"(\*\*|__)(.+?)\1")
    ITALIC_STAR = re.compile(r"\*([^*\n]+)\*")
    ITALIC_UNDERSCORE = re.compile(r"(?<!\w)_([^_\n]+)_(?!\w)")
    BULLETS = re.compile(r"^\s*[-*+]\s+", re.MULTILINE)
    NUMBERED = re.compile(r"^\s*\d+[.)]\s+", re.MULTILINE)
    BLOCKQUOTES = re.compile(r"^\s*>\s?", re.MULTILINE)

    def strip(self, body: str) -> str:
        text = body.replace("\r\n", "\n")
        text = self.FRONT_MATTER.sub("", text)
        text = self.CODE_FENCES.sub("", text)
        text = self.HTML_COMMENTS.sub("", text)
        text = self.HTML_RAW_BLOCKS.sub("", text)
        text = self.HTML_HEADINGS.sub("\n\n", text)
        text = self.HTML_BLOCK_BREAKS.sub("\n\n", text)
        text = self.HTML_TAGS.sub("", text)
        text = self.HEADINGS.sub("", text)
        text = self.SETEXT_UNDERLINES.sub("", text)
        text = self.IMAGES.sub("", text)
        text = self.LINKS.sub(r"\1", text)
        text = self.INLINE_CODE.sub(r"\1", text)
        text = self.BOLD.sub(r"\2", text)
        text = self.ITALIC_STAR.sub(r"\1", text)
        text = self.ITALIC_UNDERSCORE.sub(r"\1", text)
        text = self.BULLETS.sub("", text)
        text = self.NUMBERED.sub("", text)
        text = self.BLOCKQUOTES.sub("", text)
        return html.unescape(text).strip()
