"""
Terminal rendering of ranked matches.

Output is one line per match in grep's `path:line:text` form, with the
matched span highlighted and, optionally, the frecency score in front:

    0.412345: src/app.py:12:    def handle_request(self):
"""

from io import StringIO
from typing import Iterable, Pattern

from rich.console import Console
from rich.segment import Segments
from rich.text import Text

from zg.core.types import MatchCandidate

PATH_STYLE = "magenta"
LINE_NUMBER_STYLE = "green"
MATCH_STYLE = "bold red"
SCORE_STYLE = "dim cyan"
SEPARATOR_STYLE = "dim white"


class MatchPresenter:
    """Render match candidates as highlighted grep-style lines.

    Args:
        show_score: Prefix each line with its frecency score
        color: Emit ANSI styles (plain text otherwise)
    """

    def __init__(self, show_score: bool = False, color: bool = True):
        self.show_score = show_score
        self.color = color

    def render(self, candidates: Iterable[MatchCandidate], matcher: Pattern[str]) -> str:
        """Render all candidates, in the order given, to a string."""
        string_io = StringIO()
        console = Console(
            file=string_io,
            force_terminal=self.color,
            no_color=not self.color,
            color_system="standard" if self.color else None,
            highlight=False,
            width=999999
        )
        for candidate in candidates:
            line = self.format_line(candidate, matcher)
            # Printing a Text wraps it, which expands tabs; segments go out verbatim
            console.print(Segments(line.render(console, end="\n")), crop=False)
        return string_io.getvalue()

    def format_line(self, candidate: MatchCandidate, matcher: Pattern[str]) -> Text:
        """Build the styled line for one match.

        Only the first match in the line is highlighted. A line that no
        longer matches (file edited between search and render) is shown
        without highlighting.
        """
        line = Text()
        if self.show_score:
            line.append(f"{candidate.score:.6f}", style=SCORE_STYLE)
            line.append(": ", style=SEPARATOR_STYLE)

        line.append(str(candidate.path), style=PATH_STYLE)
        line.append(":", style=SEPARATOR_STYLE)
        line.append(str(candidate.line_number), style=LINE_NUMBER_STYLE)
        line.append(":", style=SEPARATOR_STYLE)

        text = candidate.line_text
        found = matcher.search(text)
        if found is None or found.start() == found.end():
            line.append(text)
            return line

        line.append(text[:found.start()])
        line.append(text[found.start():found.end()], style=MATCH_STYLE)
        line.append(text[found.end():])
        return line
