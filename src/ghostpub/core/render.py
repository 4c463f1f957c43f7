"""HTML preview rendering with markdown-it"""

from markdown_it import MarkdownIt

from ghostpub.core.frontmatter import strip_header


def _make_parser(preset: str) -> MarkdownIt:
    """Build a MarkdownIt instance for the given preset name."""
    return MarkdownIt(preset, options_update={"linkify": False})


def markdown_to_html(note_text: str, preset: str = 'gfm-like') -> str:
    """Render a note's body (header removed) to HTML."""
    return _make_parser(preset).render(strip_header(note_text))
