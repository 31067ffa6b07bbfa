import functools
import logging
from typing import Any
from typing import Dict
from typing import List
from typing import NamedTuple
from typing import Optional
from typing import Tuple

from textmate_html.fdict import FDict
from textmate_html.metadata import decode
from textmate_html.metadata import encode
from textmate_html.metadata import FontStyle

logger = logging.getLogger(__name__)

Scope = Tuple[str, ...]
Selector = Tuple[str, ...]
# (depth of the matched scope, dot segments of the pattern, parent patterns)
Specificity = Tuple[int, int, int]

THEME_TYPES = frozenset(('light', 'dark', 'css'))

_DEFAULT_COLORS = {
    'dark': ('#ffffff', '#000000'),
    'light': ('#000000', '#ffffff'),
    'css': ('var(--shiki-foreground)', 'var(--shiki-background)'),
}

_FONT_STYLES = {
    'italic': FontStyle.ITALIC,
    'bold': FontStyle.BOLD,
    'underline': FontStyle.UNDERLINE,
    'strikethrough': FontStyle.STRIKETHROUGH,
}


def parse_font_style(s: str) -> FontStyle:
    ret = FontStyle.NONE
    for part in s.split():
        ret |= _FONT_STYLES.get(part, FontStyle.NONE)
    return ret


class PartialStyle(NamedTuple):
    fg: Optional[str] = None
    bg: Optional[str] = None
    font_style: Optional[FontStyle] = None

    def overlay_on(self, dct: Dict[str, Any]) -> None:
        for attr in self._fields:
            value = getattr(self, attr)
            if value is not None:
                dct[attr] = value

    @classmethod
    def from_dct(cls, dct: Dict[str, Any]) -> 'PartialStyle':
        kv = cls()._asdict()
        if 'foreground' in dct:
            kv['fg'] = dct['foreground']
        if 'background' in dct:
            kv['bg'] = dct['background']
        # an explicit empty `fontStyle` resets inherited styles
        if 'fontStyle' in dct:
            kv['font_style'] = parse_font_style(dct['fontStyle'])
        return cls(**kv)


def _parse_selectors(scope: Any) -> Tuple[Selector, ...]:
    if isinstance(scope, str):
        scopes = [
            s.strip() for s in scope.split(',')
            # some themes have a buggy trailing comma
            if s.strip()
        ]
    else:
        scopes = [s.strip() for s in scope if s.strip()]
    return tuple(tuple(s.split()) for s in scopes)


class ThemeRule(NamedTuple):
    name: Optional[str]
    scope: str
    selectors: Tuple[Selector, ...]
    style: PartialStyle

    @classmethod
    def from_dct(cls, dct: Dict[str, Any]) -> 'ThemeRule':
        scope = dct['scope']
        if not isinstance(scope, str):
            scope = ', '.join(scope)
        return cls(
            name=dct.get('name'),
            scope=scope,
            selectors=_parse_selectors(dct['scope']),
            style=PartialStyle.from_dct(dct.get('settings', {})),
        )


class RuleMatch(NamedTuple):
    rule: ThemeRule
    scope_index: int
    specificity: Specificity


class ResolvedStyle(NamedTuple):
    color: Optional[str]
    bg_color: Optional[str]
    font_style: FontStyle
    matched_rules: Tuple[RuleMatch, ...]


class TokenStyle(NamedTuple):
    color: Optional[str] = None
    bg_color: Optional[str] = None
    font_style: FontStyle = FontStyle.NONE


class Theme(NamedTuple):
    name: str
    type: str
    fg: str
    bg: str
    rules: Tuple[ThemeRule, ...]
    colors: FDict[str, str]
    # index 0 is the theme default and is never emitted explicitly
    color_map: Tuple[Optional[str], ...]

    # hashed by identity: cache lookups must not walk every rule
    def __hash__(self) -> int:
        return id(self)

    def __eq__(self, other: object) -> bool:
        return self is other

    def __ne__(self, other: object) -> bool:
        return self is not other

    @functools.lru_cache(maxsize=None)
    def metadata_for(self, scopes: Scope) -> int:
        style = resolve(self, scopes)
        return encode(
            style.font_style,
            self.color_index(style.color),
            self.color_index(style.bg_color),
        )

    def color_index(self, color: Optional[str]) -> int:
        if color is None:
            return 0
        else:
            return self.color_map.index(color)

    def token_style(self, metadata: int) -> TokenStyle:
        font_style, color_index, bg_color_index = decode(metadata)
        return TokenStyle(
            color=self.color_map[color_index],
            bg_color=self.color_map[bg_color_index],
            font_style=font_style,
        )

    @classmethod
    def from_dct(cls, data: Dict[str, Any]) -> 'Theme':
        theme_type = data.get('type', 'dark')
        if theme_type not in THEME_TYPES:
            raise ValueError(f'unknown theme type: {theme_type!r}')
        colors = data.get('colors') or {}
        settings = data.get('settings', data.get('tokenColors', ()))

        default: Dict[str, Any] = {}
        for k in ('foreground', 'editor.foreground'):
            if k in colors:
                default['fg'] = colors[k]
                break
        for k in ('background', 'editor.background'):
            if k in colors:
                default['bg'] = colors[k]
                break

        rules: List[ThemeRule] = []
        for setting in settings:
            if not setting.get('scope'):
                style = PartialStyle.from_dct(setting.get('settings', {}))
                style.overlay_on(default)
            else:
                rules.append(ThemeRule.from_dct(setting))

        fallback_fg, fallback_bg = _DEFAULT_COLORS[theme_type]
        fg = data.get('fg') or default.get('fg', fallback_fg)
        bg = data.get('bg') or default.get('bg', fallback_bg)

        color_map: List[Optional[str]] = [None]
        for rule in rules:
            for color in (rule.style.fg, rule.style.bg):
                if color is not None and color not in color_map:
                    color_map.append(color)

        name = data.get('name', '')
        logger.debug(
            'theme %r: %d rules, %d colors', name, len(rules), len(color_map),
        )
        return cls(
            name=name,
            type=theme_type,
            fg=fg,
            bg=bg,
            rules=tuple(rules),
            colors=FDict(dict(colors)),
            color_map=tuple(color_map),
        )


def _pattern_matches(pattern: str, scope: str) -> bool:
    return scope == pattern or scope.startswith(f'{pattern}.')


def match_selector(
        selector: Selector,
        scopes: Scope,
) -> Optional[Tuple[int, Specificity]]:
    """match a selector against a scope stack (outermost first)

    the last selector pattern must match a scope of the stack, preferring
    the innermost one, and each parent pattern must match an ancestor of
    the previous match.  patterns match a scope when they are equal to it
    or a dot-separated prefix of it.

    returns ``(scope_index, specificity)`` or ``None``.
    """
    *parents, target = selector

    idx = len(scopes) - 1
    while idx >= 0 and not _pattern_matches(target, scopes[idx]):
        idx -= 1
    if idx < 0:
        return None

    pos = idx
    for parent in reversed(parents):
        pos -= 1
        while pos >= 0 and not _pattern_matches(parent, scopes[pos]):
            pos -= 1
        if pos < 0:
            return None

    return idx, (idx, target.count('.') + 1, len(parents))


@functools.lru_cache(maxsize=None)
def resolve(theme: Theme, scopes: Scope) -> ResolvedStyle:
    """resolve the style of a token from every theme rule which matches

    rules are overlaid from least to most specific (later declaration wins
    ties) so color, background and font style each fall through the cascade
    on their own.
    """
    matches = []
    for order, rule in enumerate(theme.rules):
        best: Optional[Tuple[int, Specificity]] = None
        for selector in rule.selectors:
            match = match_selector(selector, scopes)
            if match is not None and (best is None or match[1] > best[1]):
                best = match
        if best is not None:
            scope_index, specificity = best
            matches.append((specificity, order, rule, scope_index))

    matches.sort(key=lambda m: (m[0], m[1]))

    style: Dict[str, Any] = PartialStyle()._asdict()
    for _, _, rule, _ in matches:
        rule.style.overlay_on(style)

    return ResolvedStyle(
        color=style['fg'],
        bg_color=style['bg'],
        font_style=style['font_style'] or FontStyle.NONE,
        matched_rules=tuple(
            RuleMatch(rule, scope_index, specificity)
            for specificity, _, rule, scope_index in matches
        ),
    )
