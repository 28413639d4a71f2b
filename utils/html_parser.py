"""
HTML parsing utilities for turning scraped pages into compact markdown.
Optimized for LLM consumption by removing navigation, ads, and formatting noise.
"""
import re
from typing import Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Comment, Tag

from utils.logger import app_logger


class HTMLParser:
    """HTML parser for extracting readable markdown from web pages."""

    # Tags to remove completely
    UNWANTED_TAGS = [
        'script', 'style', 'nav', 'header', 'footer', 'aside',
        'iframe', 'noscript', 'svg', 'form', 'button', 'template'
    ]

    # Block elements rendered as markdown blocks
    BLOCK_TAGS = ['h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'p', 'li', 'pre', 'blockquote']

    # Blocks whose descendants are already covered by their own text
    CONTAINER_TAGS = ['p', 'li', 'pre', 'blockquote']

    # Class/ID tokens that indicate junk content
    _junk_attr_pattern: re.Pattern = re.compile(
        r'(?:^|[-_\s])(?:nav|navbar|menu|sidebar|footer|header|banner|ads?|advert|advertisement|'
        r'cookie|cookies|social|share|promo|newsletter|popup|modal)(?:[-_\s]|$)',
        re.IGNORECASE
    )

    _space_before_punctuation: re.Pattern = re.compile(r'\s+([.,;:!?)])')

    @staticmethod
    def to_markdown(html: str, max_length: int = 8000, base_url: Optional[str] = None) -> str:
        """
        Convert the main content of an HTML page to markdown.

        Headings become '#' lines, list items '- ' lines, code blocks fenced
        blocks and links '[text](url)'. Relative links are resolved against
        base_url when given.

        Args:
            html: Raw HTML content
            max_length: Maximum length of the returned markdown
            base_url: URL the page was fetched from

        Returns:
            Markdown text, or an empty string if nothing readable was found
        """
        try:
            soup = BeautifulSoup(html, 'lxml')

            for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
                comment.extract()

            for tag in soup(HTMLParser.UNWANTED_TAGS):
                tag.decompose()

            for elem in soup.find_all(HTMLParser._is_junk):
                elem.decompose()

            content_source = HTMLParser._find_main_content(soup)
            HTMLParser._inline_links(content_source, base_url)

            blocks = []
            for elem in content_source.find_all(HTMLParser.BLOCK_TAGS):
                if elem.find_parent(HTMLParser.CONTAINER_TAGS):
                    continue
                block = HTMLParser._render_block(elem)
                if block:
                    blocks.append(block)

            if blocks:
                markdown = '\n\n'.join(blocks)
            else:
                markdown = HTMLParser._normalize(content_source.get_text(separator=' ', strip=True))

            if len(markdown) > max_length:
                markdown = HTMLParser._truncate_at_sentence(markdown, max_length)

            return markdown

        except Exception as e:
            app_logger.warning(f"HTML to markdown conversion failed: {e}")
            return ""

    @staticmethod
    def _is_junk(elem: Tag) -> bool:
        """Whether an element's class or id marks it as page chrome."""
        if not isinstance(elem, Tag) or elem.name in ('html', 'body', 'main', 'article'):
            return False
        classes = elem.get('class') or []
        if isinstance(classes, str):
            classes = [classes]
        candidates = list(classes) + [elem.get('id') or '']
        return any(HTMLParser._junk_attr_pattern.search(value) for value in candidates if value)

    @staticmethod
    def _find_main_content(soup: BeautifulSoup) -> Tag:
        """Pick the element holding the page's main content."""
        for selector in [
            soup.find('article'),
            soup.find('main'),
            soup.find('div', class_=re.compile(r'(content|article|post|entry)', re.I)),
            soup.find('div', id=re.compile(r'(content|article|post|entry)', re.I)),
        ]:
            if selector:
                return selector
        return soup.body or soup

    @staticmethod
    def _inline_links(content: Tag, base_url: Optional[str]) -> None:
        """Replace anchors with markdown links in place."""
        for anchor in content.find_all('a', href=True):
            text = HTMLParser._normalize(anchor.get_text(separator=' ', strip=True))
            href = anchor['href'].strip()
            if base_url:
                href = urljoin(base_url, href)

            if text and href.startswith(('http://', 'https://')):
                anchor.replace_with(f"[{text}]({href})")
            else:
                anchor.replace_with(text)

    @staticmethod
    def _render_block(elem: Tag) -> str:
        """Render one block element as markdown."""
        if elem.name == 'pre':
            code = elem.get_text().strip('\n')
            return f"```\n{code}\n```" if code.strip() else ""

        text = HTMLParser._normalize(elem.get_text(separator=' ', strip=True))
        if not text:
            return ""

        if elem.name.startswith('h'):
            return f"{'#' * int(elem.name[1])} {text}"
        if elem.name == 'li':
            return f"- {text}"
        if elem.name == 'blockquote':
            return f"> {text}"
        return text

    @staticmethod
    def _normalize(text: str) -> str:
        text = re.sub(r'\s+', ' ', text).strip()
        return HTMLParser._space_before_punctuation.sub(r'\1', text)

    @staticmethod
    def _truncate_at_sentence(text: str, max_length: int) -> str:
        """
        Truncate text at a sentence boundary near the max length.

        Args:
            text: Text to truncate
            max_length: Maximum length

        Returns:
            Truncated text
        """
        text = text[:max_length]
        last_period = text.rfind('.')

        if last_period > max_length * 0.7:
            return text[:last_period + 1]

        last_space = text.rfind(' ')
        if last_space > 0:
            return text[:last_space] + '...'
        return text
