import html
import warnings
from typing import Callable
from typing import Dict
from typing import List
from typing import Literal
from typing import NamedTuple
from typing import Optional
from typing import Sequence
from typing import Tuple
from typing import Union

from textmate_html.compositor import MergedToken
from textmate_html.errors import InvalidLineOption
from textmate_html.errors import UnknownTheme
from textmate_html.metadata import FontStyle
from textmate_html.theme import Theme
from textmate_html.theme import TokenStyle
from textmate_html.tokenize import ColoredToken
from textmate_html.tokenize import Explanation

DEFAULT_CSS_VARIABLE_PREFIX = '--shiki-'
DEFAULT_COLOR = 'light'

DefaultColor = Union[str, Literal[False]]
Declarations = List[Tuple[str, str]]


class ThemedToken(NamedTuple):
    content: str
    color: Optional[str] = None
    bg_color: Optional[str] = None
    font_style: FontStyle = FontStyle.NONE
    # replaces the color derived style when set
    html_style: Optional[str] = None
    explanation: Tuple[Explanation, ...] = ()


TokenTree = List[List[ThemedToken]]


class LineOption(NamedTuple):
    line: int  # 1-based
    classes: Tuple[str, ...] = ()


class PreProps(NamedTuple):
    class_name: str
    style: str
    children: str


class CodeProps(NamedTuple):
    children: str


class LineProps(NamedTuple):
    class_name: str
    children: str
    lines: Sequence[Sequence[ThemedToken]]
    line: Sequence[ThemedToken]
    index: int


class TokenProps(NamedTuple):
    style: str
    children: str
    tokens: Sequence[ThemedToken]
    token: ThemedToken
    index: int


class ElementsOptions(NamedTuple):
    pre: Optional[Callable[[PreProps], str]] = None
    code: Optional[Callable[[CodeProps], str]] = None
    line: Optional[Callable[[LineProps], str]] = None
    token: Optional[Callable[[TokenProps], str]] = None


class HtmlRendererOptions(NamedTuple):
    lang: str = 'text'
    fg: Optional[str] = None
    bg: Optional[str] = None
    theme_name: str = ''
    # replaces the fg / bg derived style of the root element when set
    root_style: Optional[str] = None
    line_options: Tuple[LineOption, ...] = ()
    elements: ElementsOptions = ElementsOptions()
    merge_whitespaces: bool = True


def _css(declarations: Declarations) -> str:
    return ';'.join(f'{prop}:{value}' for prop, value in declarations)


def _font_declarations(font_style: FontStyle) -> Declarations:
    ret = []
    if font_style & FontStyle.ITALIC:
        ret.append(('font-style', 'italic'))
    if font_style & FontStyle.BOLD:
        ret.append(('font-weight', 'bold'))
    decorations = []
    if font_style & FontStyle.UNDERLINE:
        decorations.append('underline')
    if font_style & FontStyle.STRIKETHROUGH:
        decorations.append('line-through')
    if decorations:
        ret.append(('text-decoration', ' '.join(decorations)))
    return ret


def _style_declarations(style: TokenStyle) -> Declarations:
    ret = []
    if style.color is not None:
        ret.append(('color', style.color))
    if style.bg_color is not None:
        ret.append(('background-color', style.bg_color))
    ret.extend(_font_declarations(style.font_style))
    return ret


def _variable_declarations(style: TokenStyle, var: str) -> Declarations:
    ret = []
    if style.color is not None:
        ret.append((var, style.color))
    if style.bg_color is not None:
        ret.append((f'{var}-bg', style.bg_color))
    for prop, value in _font_declarations(style.font_style):
        ret.append((f'{var}-{prop}', value))
    return ret


def _ordered_keys(
        keys: Sequence[str],
        default_color: DefaultColor,
) -> List[str]:
    if default_color is False:
        return list(keys)
    elif default_color not in keys:
        raise UnknownTheme(str(default_color))
    else:
        return [default_color, *(k for k in keys if k != default_color)]


def themes_style(
        styles: Dict[str, TokenStyle],
        default_color: DefaultColor = DEFAULT_COLOR,
        css_variable_prefix: str = DEFAULT_CSS_VARIABLE_PREFIX,
) -> str:
    """inline style for one merged token across every theme

    the default theme is written as plain properties, the others as custom
    properties named ``{css_variable_prefix}{key}``.
    """
    declarations: Declarations = []
    for key in _ordered_keys(list(styles), default_color):
        if key == default_color:
            declarations.extend(_style_declarations(styles[key]))
        else:
            var = f'{css_variable_prefix}{key}'
            declarations.extend(_variable_declarations(styles[key], var))
    return _css(declarations)


def root_style(
        themes: Dict[str, Theme],
        default_color: DefaultColor = DEFAULT_COLOR,
        css_variable_prefix: str = DEFAULT_CSS_VARIABLE_PREFIX,
) -> str:
    declarations: Declarations = []
    for key in _ordered_keys(list(themes), default_color):
        theme = themes[key]
        if key == default_color:
            declarations.append(('color', theme.fg))
            declarations.append(('background-color', theme.bg))
        else:
            var = f'{css_variable_prefix}{key}'
            declarations.append((var, theme.fg))
            declarations.append((f'{var}-bg', theme.bg))
    return _css(declarations)


def to_themed_token(token: ColoredToken, theme: Theme) -> ThemedToken:
    style = theme.token_style(token.metadata)
    return ThemedToken(
        content=token.content,
        color=style.color,
        bg_color=style.bg_color,
        font_style=style.font_style,
        explanation=token.explanation,
    )


def themed_lines(
        merged_lines: Sequence[Sequence[MergedToken]],
        default_color: DefaultColor = DEFAULT_COLOR,
        css_variable_prefix: str = DEFAULT_CSS_VARIABLE_PREFIX,
) -> TokenTree:
    """build the token tree for merged tokens

    tokens carry the default theme's style as their own colors and the
    combined inline style for every theme in ``html_style``.
    """
    ret: TokenTree = []
    for merged in merged_lines:
        line = []
        for token in merged:
            if default_color is not False and default_color in token.styles:
                style = token.styles[default_color]
            else:
                style = TokenStyle()
            line.append(
                ThemedToken(
                    content=token.content,
                    color=style.color,
                    bg_color=style.bg_color,
                    font_style=style.font_style,
                    html_style=themes_style(
                        token.styles, default_color, css_variable_prefix,
                    ),
                    explanation=token.explanation,
                ),
            )
        ret.append(line)
    return ret


def merge_whitespace_tokens(
        tokens: Sequence[ThemedToken],
) -> List[ThemedToken]:
    """fold whitespace-only tokens into the token that follows them"""
    ret = []
    carry = ''
    for i, token in enumerate(tokens):
        if i + 1 < len(tokens) and token.content.isspace():
            carry += token.content
        elif carry:
            ret.append(token._replace(content=carry + token.content))
            carry = ''
        else:
            ret.append(token)
    return ret


def _token_style(token: ThemedToken) -> str:
    if token.html_style is not None:
        return token.html_style
    else:
        return _css(
            _style_declarations(
                TokenStyle(token.color, token.bg_color, token.font_style),
            ),
        )


def _pre(props: PreProps) -> str:
    return (
        f'<pre class="{html.escape(props.class_name)}" '
        f'style="{html.escape(props.style)}" tabindex="0">'
        f'{props.children}</pre>'
    )


def _code(props: CodeProps) -> str:
    return f'<code>{props.children}</code>'


def _line(props: LineProps) -> str:
    return (
        f'<span class="{html.escape(props.class_name)}">'
        f'{props.children}</span>'
    )


def _token(props: TokenProps) -> str:
    if props.style:
        return (
            f'<span style="{html.escape(props.style)}">'
            f'{props.children}</span>'
        )
    else:
        return f'<span>{props.children}</span>'


def _line_classes(
        line_options: Sequence[LineOption],
        line_count: int,
) -> Dict[int, List[str]]:
    ret: Dict[int, List[str]] = {}
    for option in line_options:
        if not 1 <= option.line <= line_count:
            warnings.warn(
                InvalidLineOption(
                    f'line {option.line} is outside of 1..{line_count}, '
                    f'ignoring',
                ),
                stacklevel=3,
            )
            continue
        ret.setdefault(option.line, []).extend(option.classes)
    return ret


def render_to_html(
        lines: Sequence[Sequence[ThemedToken]],
        options: HtmlRendererOptions = HtmlRendererOptions(),
) -> str:
    pre = options.elements.pre or _pre
    code = options.elements.code or _code
    line_element = options.elements.line or _line
    token_element = options.elements.token or _token

    line_classes = _line_classes(options.line_options, len(lines))

    lines_html = []
    for idx, line in enumerate(lines):
        if options.merge_whitespaces:
            tokens = merge_whitespace_tokens(line)
        else:
            tokens = list(line)

        tokens_html = ''.join(
            token_element(
                TokenProps(
                    style=_token_style(token),
                    children=html.escape(token.content),
                    tokens=tokens,
                    token=token,
                    index=i,
                ),
            )
            for i, token in enumerate(tokens)
        )

        class_name = ' '.join(('line', *line_classes.get(idx + 1, ())))
        lines_html.append(
            line_element(
                LineProps(
                    class_name=class_name,
                    children=tokens_html,
                    lines=lines,
                    line=line,
                    index=idx,
                ),
            ),
        )

    if options.root_style is not None:
        style = options.root_style
    else:
        declarations = []
        if options.fg is not None:
            declarations.append(('color', options.fg))
        if options.bg is not None:
            declarations.append(('background-color', options.bg))
        style = _css(declarations)

    class_parts = ['shiki', options.theme_name]
    if options.lang:
        class_parts.append(f'language-{options.lang}')

    return pre(
        PreProps(
            class_name=' '.join(part for part in class_parts if part),
            style=style,
            children=code(CodeProps('\n'.join(lines_html))),
        ),
    )
