"""
Help-text renderer.

Plain-text layout of help documents at a given width, measured in terminal
cells (rich.cells.cell_len), so wide characters count double:

- wrap_text(): greedy word wrap of one paragraph.
- wrap_paragraphs(): wrap every blank-line separated paragraph, keeping one
  blank line between them.
- DefinitionList: a titled two-column list (aliases or names on the left,
  description on the right).
- format_help(): assemble usage, summary, definition lists and details.

HelpDocument ties these together for one command or group and can be printed
through rich, optionally with styled titles. The text is the same either way.
"""
import re
from collections import namedtuple
from types import MappingProxyType

from rich.cells import cell_len
from rich.text import Text

PARAGRAPH = re.compile(r"\n[ \t]*\n")
TITLE = re.compile(r"^[^\s].*:$", re.MULTILINE)
LABEL = re.compile(r"^Usage:")

Definition = namedtuple("Definition", ("terms", "text"))


def wrap_text(text, columns, /):
    """
    Split text into lines of at most ``columns`` cells.

    Whitespace runs collapse to one space. A word is appended to the current
    line unless that would exceed the width, in which case the line is flushed
    and the word starts the next one; a word wider than the width sits alone
    on its line. Always returns at least one (possibly empty) line.
    """
    lines = []
    current = ""
    for word in text.split():
        if not current:
            current = word
        elif cell_len(current) + 1 + cell_len(word) > columns:
            lines.append(current)
            current = word
        else:
            current += " " + word
    lines.append(current)
    return lines


def wrap_paragraphs(text, columns, /):
    paragraphs = [paragraph for paragraph in PARAGRAPH.split(text) if paragraph.strip()]
    return "\n".join(
        "".join(line + "\n" for line in wrap_text(paragraph, columns)) for paragraph in paragraphs
    )


def format_terms(terms, width, /):
    """
    Lay out the left column of one definition.

    Returns (separate, inline): terms printed on their own lines above the
    entry, and the text printed inline next to the description.
    """
    joined = ", ".join(terms)
    if cell_len(terms[-1]) > width:
        return tuple(terms), ""
    if cell_len(joined) > width:
        return tuple(terms[:-1]), terms[-1]
    return (), joined


class DefinitionList:
    """
    A titled list of definitions ("Options", "Groups", "Commands").

    Layout at ``columns`` width
    - the left column is capped at min((columns - 4) // 2, 25) cells;
    - entries whose joined terms fit are printed inline; when only the last
      term fits, earlier terms go on their own lines above it; otherwise every
      term goes on its own line and the description starts at the column;
    - the left column is as wide as the widest inline entry, the right column
      gets the rest, up to 80 cells.
    """

    def __init__(self, title, definitions=()):
        self.title = title
        self.definitions = [Definition(tuple(terms), text or "") for terms, text in definitions]

    def __bool__(self):
        return bool(self.definitions)

    def __repr__(self):
        return "definition-list(title=%r, definitions=%r)" % (self.title, self.definitions)

    def format(self, columns, /):
        cap = min((columns - 4) // 2, 25)
        layouts = [format_terms(definition.terms, cap) for definition in self.definitions]

        left = max((cell_len(inline) for _, inline in layouts if inline), default=0)
        right = min(columns - 4 - left, 80)

        lines = [self.title + ":"]
        for definition, (separate, inline) in zip(self.definitions, layouts):
            lines.extend("  " + term for term in separate)
            wrapped = wrap_text(definition.text, right)
            lines.append(("  " + inline + " " * (left - cell_len(inline)) + "  " + wrapped[0]).rstrip())
            lines.extend(" " * (left + 4) + line for line in wrapped[1:])
        return "".join(line + "\n" for line in lines)


def format_help(usage, summary, details, lists, columns, /):
    """
    Assemble a help document.

    Sections, separated by one blank line: the wrapped usage, the wrapped
    summary (if any), every non-empty definition list, the wrapped details
    (if any).
    """
    sections = [wrap_paragraphs(usage, columns)]
    if summary:
        sections.append(wrap_paragraphs(summary, columns))
    for definitions in lists:
        if definitions:
            sections.append(definitions.format(columns))
    if details:
        sections.append(wrap_paragraphs(details, columns))
    return "\n".join(sections)


class HelpDocument:
    """
    Help for one command or group, derived from its live declaration.

    str(document) is the plain text; printing through rich applies the
    styles (usage label and list titles) when ``colorful`` is set.
    """

    def __init__(self, usage, summary, details, lists, columns, *, colorful=False, styles=MappingProxyType({})):
        self.usage = usage
        self.summary = summary
        self.details = details
        self.lists = tuple(lists)
        self.columns = columns
        self.colorful = colorful
        self.styles = {
            "usage-label": "bold #00E6FF",
            "section-title": "bold #FFFFFF",
        } | dict(styles)

    def render(self):
        return format_help(self.usage, self.summary, self.details, self.lists, self.columns)

    def __str__(self):
        return self.render()

    def __rich__(self):
        text = Text(self.render())
        if self.colorful:
            text.highlight_regex(LABEL, self.styles["usage-label"])
            text.highlight_regex(TITLE, self.styles["section-title"])
        return text


__all__ = (
    "Definition",
    "DefinitionList",
    "HelpDocument",
    "wrap_text",
    "wrap_paragraphs",
    "format_terms",
    "format_help",
)
