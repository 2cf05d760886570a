"""Turn article markup into clean, readable plain text."""

import re

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

# Private-use character, never present in real text
PARAGRAPH_MARKER = "\ue000"

BLOCK_TAGS = ["p", "div", "h1", "h2", "h3", "h4", "h5", "h6", "li", "blockquote", "pre", "tr"]
BREAK_TAGS = ["br", "hr"]

# Elements that are almost never part of an article body
UNWANTED_SELECTORS = [
    "script", "style", "link", "meta", "noscript", "template", "svg", "iframe",
    "header", "footer", "nav", "aside", "form",
    ".comments", "#comments", ".comment-form", ".comments-section",
    ".sidebar", "#sidebar", ".widget-header", ".widget-footer",
    ".widget-social", ".widget-contact",
    ".social-links", ".share-buttons", ".social-share", ".share-dialog",
    ".subscribe-form", ".subscription-widget",
    ".post-meta", ".post-navigation", ".breadcrumbs", ".pagination",
    ".related-posts", "#related-posts", ".author-bio",
    '[data-aid="FOOTER_POWERED_BY_AIRO_RENDERED"]',
]


def normalize_text(text: str) -> str:
    """Turn paragraph markers into newlines and collapse redundant whitespace."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = re.sub(r"[^\S\n]+", " ", text)
    text = text.replace(PARAGRAPH_MARKER, "\n")
    text = re.sub(r" *\n *", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def remove_unwanted(root: Tag) -> None:
    """Remove navigation, comments, widgets and other non-article elements in place."""
    for unwanted in root.select(", ".join(UNWANTED_SELECTORS)):
        if not unwanted.decomposed:
            unwanted.decompose()


def element_to_text(container: Tag) -> str:
    """
    Collapse an element to plain text, keeping block boundaries as line breaks.

    Mutates ``container``: markers are inserted after block elements and in
    place of ``br``/``hr``.
    """
    for comment in container.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()

    # Source whitespace is not significant except inside <pre>
    for node in list(container.find_all(string=True)):
        if type(node) is not NavigableString:
            continue
        if node.find_parent("pre") is None:
            node.replace_with(re.sub(r"\s+", " ", str(node)))
        else:
            node.replace_with(str(node).replace("\n", PARAGRAPH_MARKER))

    for tag in container.find_all(BREAK_TAGS):
        tag.replace_with(PARAGRAPH_MARKER)
    for cell in container.find_all(["td", "th"]):
        cell.append(" ")
    blocks = container.find_all(BLOCK_TAGS)
    if container.name in BLOCK_TAGS:
        blocks.append(container)
    for tag in blocks:
        tag.append(PARAGRAPH_MARKER)

    return normalize_text(container.get_text())


def html_to_text(content_html: str) -> str:
    """Strip an HTML fragment (e.g. inline feed content) to plain text."""
    if not content_html or not content_html.strip():
        return ""
    soup = BeautifulSoup(content_html, "lxml")
    for tag in soup.find_all(["script", "style", "noscript", "template"]):
        tag.decompose()
    root = soup.body or soup
    return element_to_text(root)
