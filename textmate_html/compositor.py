"""alignment of several themes' tokenizations of the same line

each theme splits a line at its own boundaries; the compositor cuts the line
at the union of those boundaries so every merged token lies inside exactly
one token of every theme.
"""
import itertools
import logging
from typing import Dict
from typing import Generator
from typing import Iterable
from typing import List
from typing import NamedTuple
from typing import Optional
from typing import Sequence
from typing import Tuple

from textmate_html.errors import ThemeLengthMismatch
from textmate_html.theme import Theme
from textmate_html.theme import TokenStyle
from textmate_html.tokenize import ColoredToken
from textmate_html.tokenize import Explanation

logger = logging.getLogger(__name__)


class MergedToken(NamedTuple):
    content: str
    styles: Dict[str, TokenStyle]
    explanation: Tuple[Explanation, ...] = ()


def _next_token(tokens: Sequence[ColoredToken], idx: int) -> int:
    while idx < len(tokens) and not tokens[idx].content:
        idx += 1
    return idx


def _clip_explanation(
        token: ColoredToken,
        token_start: int,
        start: int,
        end: int,
) -> Tuple[Explanation, ...]:
    """the parts of a token's explanation which fall inside [start, end)"""
    ret = []
    pos = token_start
    for explanation in token.explanation:
        e_start, pos = pos, pos + len(explanation.content)
        lo, hi = max(e_start, start), min(pos, end)
        if lo < hi:
            content = explanation.content[lo - e_start:hi - e_start]
            ret.append(explanation._replace(content=content))
    return tuple(ret)


def composite(
        lines: Dict[str, Sequence[ColoredToken]],
        themes: Dict[str, Theme],
        explanation_key: Optional[str] = None,
) -> List[MergedToken]:
    """merge one line as tokenized by each theme

    merged tokens carry the explanation of ``explanation_key``'s covering
    token (the first key when it is not given), clipped to the merged text.
    """
    keys = list(lines)
    if not keys:
        return []
    if explanation_key not in lines:
        explanation_key = keys[0]

    lengths = {k: sum(len(t.content) for t in lines[k]) for k in keys}
    if len(set(lengths.values())) > 1:
        logger.error('theme tokenizations out of sync: %r', lengths)
        raise ThemeLengthMismatch(lengths)

    contents = {k: ''.join(t.content for t in lines[k]) for k in keys}
    if len(set(contents.values())) > 1:
        logger.error('theme tokenizations differ in text: %r', contents)
        raise ThemeLengthMismatch(lengths, 'line content')
    line = contents[keys[0]]

    idxs = [_next_token(lines[k], 0) for k in keys]
    ends = [
        len(lines[k][i].content) if i < len(lines[k]) else 0
        for k, i in zip(keys, idxs)
    ]

    ret: List[MergedToken] = []
    pos = 0
    while pos < len(line):
        cut = min(ends)
        styles = {}
        explanation: Tuple[Explanation, ...] = ()
        for n, k in enumerate(keys):
            tokens = lines[k]
            token = tokens[idxs[n]]
            styles[k] = themes[k].token_style(token.metadata)
            if k == explanation_key:
                token_start = ends[n] - len(token.content)
                explanation = _clip_explanation(token, token_start, pos, cut)
            if ends[n] == cut:
                idxs[n] = _next_token(tokens, idxs[n] + 1)
                if idxs[n] < len(tokens):
                    ends[n] += len(tokens[idxs[n]].content)
        ret.append(MergedToken(line[pos:cut], styles, explanation))
        pos = cut

    return ret


def composite_document(
        streams: Dict[str, Iterable[Tuple[int, List[ColoredToken]]]],
        themes: Dict[str, Theme],
        explanation_key: Optional[str] = None,
) -> Generator[List[MergedToken], None, None]:
    """composite per-theme token streams one line at a time"""
    keys = list(streams)
    seen = dict.fromkeys(keys, 0)
    for rows in itertools.zip_longest(*(streams[k] for k in keys)):
        for k, row in zip(keys, rows):
            if row is not None:
                seen[k] += 1
        if None in rows:
            logger.error('theme token streams out of sync: %r', seen)
            raise ThemeLengthMismatch(seen, 'line count')
        yield composite(
            {k: tokens for k, (_, tokens) in zip(keys, rows)},
            themes,
            explanation_key,
        )
