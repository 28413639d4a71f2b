from utils.html_parser import HTMLParser
from tests.fixtures.responses import MOCK_WEBPAGE_CONTENT


def test_to_markdown_renders_headings_paragraphs_and_lists():
    markdown = HTMLParser.to_markdown(MOCK_WEBPAGE_CONTENT, base_url="https://www.space.com/news/record")

    assert markdown.split("\n\n") == [
        "# SpaceX Smashes Launch Record in 2025",
        "In a historic achievement, SpaceX has successfully completed its 100th Falcon 9 launch of 2025.",
        "The mission lifted off from [Cape Canaveral](https://www.space.com/places/cape-canaveral).",
        "- Booster landed on the drone ship",
        "- Starlink satellites deployed",
    ]


def test_to_markdown_drops_page_chrome():
    html = """
    <html><body>
        <header>Site header</header>
        <div id="cookie-banner">We use cookies</div>
        <div class="sidebar">Related links</div>
        <main><p>Actual content lives here.</p></main>
        <script>trackVisitor();</script>
    </body></html>
    """
    assert HTMLParser.to_markdown(html) == "Actual content lives here."


def test_to_markdown_keeps_elements_whose_class_only_contains_junk_substring():
    html = '<html><body><div class="download-section"><p>Install the package.</p></div></body></html>'
    assert HTMLParser.to_markdown(html) == "Install the package."


def test_to_markdown_renders_code_and_quotes():
    html = """
    <article>
        <h2>Usage</h2>
        <pre>pip install deepsearch
deepsearch --help</pre>
        <blockquote>Search first, then read.</blockquote>
    </article>
    """
    assert HTMLParser.to_markdown(html) == (
        "## Usage\n\n"
        "```\npip install deepsearch\ndeepsearch --help\n```\n\n"
        "> Search first, then read."
    )


def test_to_markdown_link_without_absolute_url_keeps_text():
    html = '<article><p>See <a href="/docs">the docs</a> or <a href="mailto:a@b.c">mail us</a>.</p></article>'
    assert HTMLParser.to_markdown(html) == "See the docs or mail us."


def test_to_markdown_falls_back_to_plain_text():
    html = "<html><body><div><span>Loose</span> <span>text only</span></div></body></html>"
    assert HTMLParser.to_markdown(html) == "Loose text only"


def test_to_markdown_truncates_at_sentence_boundary():
    sentence = "This sentence is exactly forty chars ok. "
    html = "<article><p>" + sentence * 10 + "</p></article>"

    markdown = HTMLParser.to_markdown(html, max_length=100)

    assert len(markdown) <= 100
    assert markdown.endswith(".")


def test_to_markdown_returns_empty_for_empty_document():
    assert HTMLParser.to_markdown("") == ""
    assert HTMLParser.to_markdown("<html><body><script>x()</script></body></html>") == ""
