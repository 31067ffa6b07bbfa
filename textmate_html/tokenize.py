from typing import Any
from typing import Generator
from typing import List
from typing import NamedTuple
from typing import Protocol
from typing import Tuple

from textmate_html.metadata import decode
from textmate_html.metadata import FontStyle
from textmate_html.theme import resolve
from textmate_html.theme import Scope
from textmate_html.theme import Theme
from textmate_html.theme import ThemeRule

PLAIN_TEXT_LANGUAGES = frozenset(('text', 'plaintext', 'txt'))


class ScopedSpan(NamedTuple):
    start_index: int
    scopes: Scope


class LineTokens(NamedTuple):
    tokens: Tuple[ScopedSpan, ...]
    rule_stack: Any


class Grammar(Protocol):
    """the tokenizing engine for one language

    any object with these members can be registered; the grammar state it
    threads between lines is opaque here.
    """
    @property
    def scope_name(self) -> str: ...
    @property
    def initial_state(self) -> Any: ...

    def tokenize_line(self, line: str, state: Any) -> LineTokens: ...


class PlainTextGrammar(NamedTuple):
    scope_name: str = 'text.plain'
    initial_state: Any = None

    def tokenize_line(self, line: str, state: Any) -> LineTokens:
        return LineTokens((ScopedSpan(0, ()),), state)


class ScopeExplanation(NamedTuple):
    scope_name: str
    theme_matches: Tuple[ThemeRule, ...]


class Explanation(NamedTuple):
    content: str
    scopes: Tuple[ScopeExplanation, ...]


class ColoredToken(NamedTuple):
    content: str
    metadata: int
    explanation: Tuple[Explanation, ...] = ()

    @property
    def font_style(self) -> FontStyle:
        return decode(self.metadata).font_style

    @property
    def color_index(self) -> int:
        return decode(self.metadata).color_index

    @property
    def bg_color_index(self) -> int:
        return decode(self.metadata).bg_color_index


def split_lines(text: str) -> List[str]:
    """split on line feeds only

    a single trailing newline terminates the last line rather than
    starting an empty one.
    """
    if text.endswith('\n'):
        text = text[:-1]
    return text.split('\n')


def _explain(theme: Theme, content: str, scopes: Scope) -> Explanation:
    matched = resolve(theme, scopes).matched_rules
    return Explanation(
        content=content,
        scopes=tuple(
            ScopeExplanation(
                scope_name=scope,
                theme_matches=tuple(
                    match.rule for match in matched if match.scope_index == i
                ),
            )
            for i, scope in enumerate(scopes)
        ),
    )


def tokenize_line(
        grammar: Grammar,
        theme: Theme,
        line: str,
        state: Any,
        include_explanation: bool = False,
) -> Tuple[List[ColoredToken], Any]:
    line_tokens = grammar.tokenize_line(line, state)

    spans = list(line_tokens.tokens)
    if not spans or spans[0].start_index > 0:
        spans.insert(0, ScopedSpan(0, (grammar.scope_name,)))

    ret: List[ColoredToken] = []
    pos = 0
    for i, (start, scopes) in enumerate(spans):
        # a span never reaches back over text already emitted
        start = max(start, pos)
        if i + 1 < len(spans):
            end = min(spans[i + 1].start_index, len(line))
        else:
            end = len(line)
        if end <= start:
            continue
        pos = end

        content = line[start:end]
        metadata = theme.metadata_for(tuple(scopes))
        if include_explanation:
            explanation: Tuple[Explanation, ...] = (
                _explain(theme, content, tuple(scopes)),
            )
        else:
            explanation = ()

        if ret and ret[-1].metadata == metadata:
            prev = ret[-1]
            ret[-1] = ColoredToken(
                content=prev.content + content,
                metadata=metadata,
                explanation=prev.explanation + explanation,
            )
        else:
            ret.append(ColoredToken(content, metadata, explanation))

    return ret, line_tokens.rule_stack


def tokenize_document(
        text: str,
        grammar: Grammar,
        theme: Theme,
        include_explanation: bool = False,
) -> Generator[Tuple[int, List[ColoredToken]], None, None]:
    state = grammar.initial_state
    for line_idx, line in enumerate(split_lines(text)):
        tokens, state = tokenize_line(
            grammar, theme, line, state, include_explanation,
        )
        yield line_idx, tokens
