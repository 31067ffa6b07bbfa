import contextlib
import logging
from typing import Any
from typing import Callable
from typing import Dict
from typing import Iterable
from typing import List
from typing import NamedTuple
from typing import Optional
from typing import Sequence
from typing import Tuple
from typing import Union

from textmate_html.compositor import composite_document
from textmate_html.compositor import MergedToken
from textmate_html.errors import GrammarLoadFailure
from textmate_html.errors import UnknownLanguage
from textmate_html.errors import UnknownTheme
from textmate_html.render import DEFAULT_COLOR
from textmate_html.render import DEFAULT_CSS_VARIABLE_PREFIX
from textmate_html.render import DefaultColor
from textmate_html.render import ElementsOptions
from textmate_html.render import HtmlRendererOptions
from textmate_html.render import LineOption
from textmate_html.render import render_to_html
from textmate_html.render import root_style
from textmate_html.render import themed_lines
from textmate_html.render import to_themed_token
from textmate_html.render import TokenTree
from textmate_html.theme import Theme
from textmate_html.tokenize import Grammar
from textmate_html.tokenize import PLAIN_TEXT_LANGUAGES
from textmate_html.tokenize import PlainTextGrammar
from textmate_html.tokenize import tokenize_document

logger = logging.getLogger(__name__)

REQUIRED_THEME_KEYS = ('light', 'dark')


class LanguageRegistration(NamedTuple):
    name: str
    # either a ready grammar or a zero-argument callable producing one
    grammar: Union[Grammar, Callable[[], Grammar]]
    aliases: Tuple[str, ...] = ()
    display_name: Optional[str] = None


def _is_grammar(obj: Any) -> bool:
    return callable(getattr(obj, 'tokenize_line', None))


class Highlighter:
    def __init__(
            self,
            themes: Iterable[Union[Theme, Dict[str, Any]]] = (),
            langs: Iterable[LanguageRegistration] = (),
    ) -> None:
        self._themes: Dict[str, Theme] = {}
        self._grammars: Dict[str, Grammar] = {}
        self._aliases: Dict[str, str] = {}
        self._plain_text = PlainTextGrammar()
        for theme in themes:
            self.load_theme(theme)
        for lang in langs:
            self.load_language(lang)

    def load_theme(self, theme: Union[Theme, Dict[str, Any]]) -> Theme:
        if not isinstance(theme, Theme):
            theme = Theme.from_dct(theme)
        if not theme.name:
            raise ValueError('themes must have a name to be loaded')
        self._themes[theme.name] = theme
        logger.debug('loaded theme %r (%s)', theme.name, theme.type)
        return theme

    def load_language(self, lang: LanguageRegistration) -> None:
        grammar: Any = lang.grammar
        if not _is_grammar(grammar):
            try:
                grammar = grammar()
            except Exception as e:
                raise GrammarLoadFailure(lang.name, str(e)) from e
        if not _is_grammar(grammar):
            raise GrammarLoadFailure(
                lang.name, f'{type(grammar).__name__} cannot tokenize lines',
            )

        self._grammars[lang.name] = grammar
        self._aliases[grammar.scope_name] = lang.name
        for alias in lang.aliases:
            self._aliases[alias] = lang.name
        logger.debug('loaded language %r', lang.name)

    def get_theme(self, name: Optional[str] = None) -> Theme:
        if name is None:
            if not self._themes:
                raise UnknownTheme('<default>')
            return next(iter(self._themes.values()))
        with contextlib.suppress(KeyError):
            return self._themes[name]
        raise UnknownTheme(name)

    def get_grammar(self, lang: str) -> Grammar:
        if lang in PLAIN_TEXT_LANGUAGES:
            return self._plain_text
        with contextlib.suppress(KeyError):
            return self._grammars[self._aliases.get(lang, lang)]
        raise UnknownLanguage(lang)

    def get_loaded_themes(self) -> List[str]:
        return list(self._themes)

    def get_loaded_languages(self) -> List[str]:
        return sorted({*PLAIN_TEXT_LANGUAGES, *self._grammars, *self._aliases})

    def _themes_for(self, themes: Dict[str, str]) -> Dict[str, Theme]:
        for key in REQUIRED_THEME_KEYS:
            if key not in themes:
                raise UnknownTheme(key)
        return {key: self.get_theme(name) for key, name in themes.items()}

    def code_to_themed_tokens(
            self,
            code: str,
            lang: str = 'text',
            theme: Optional[str] = None,
            include_explanation: bool = True,
    ) -> TokenTree:
        grammar = self.get_grammar(lang)
        resolved = self.get_theme(theme)
        return [
            [to_themed_token(token, resolved) for token in tokens]
            for _, tokens in tokenize_document(
                code, grammar, resolved, include_explanation,
            )
        ]

    def code_to_html(
            self,
            code: str,
            lang: str = 'text',
            theme: Optional[str] = None,
            line_options: Sequence[LineOption] = (),
            elements: ElementsOptions = ElementsOptions(),
            merge_whitespaces: bool = True,
    ) -> str:
        resolved = self.get_theme(theme)
        tokens = self.code_to_themed_tokens(
            code, lang, resolved.name, include_explanation=False,
        )
        return render_to_html(
            tokens,
            HtmlRendererOptions(
                lang=lang,
                fg=resolved.fg,
                bg=resolved.bg,
                theme_name=resolved.name,
                line_options=tuple(line_options),
                elements=elements,
                merge_whitespaces=merge_whitespaces,
            ),
        )

    def code_to_tokens_with_themes(
            self,
            code: str,
            lang: str,
            themes: Dict[str, str],
            include_explanation: bool = True,
            default_color: DefaultColor = DEFAULT_COLOR,
    ) -> List[List[MergedToken]]:
        """tokenize once per theme and align the results line by line

        explanations come from the ``default_color`` theme, or from the first
        theme when there is no default.
        """
        grammar = self.get_grammar(lang)
        resolved = {key: self.get_theme(name) for key, name in themes.items()}
        streams = {
            key: tokenize_document(code, grammar, theme, include_explanation)
            for key, theme in resolved.items()
        }
        explanation_key = default_color if default_color is not False else None
        return list(composite_document(streams, resolved, explanation_key))

    def code_to_themed_tokens_dual_themes(
            self,
            code: str,
            lang: str,
            themes: Dict[str, str],
            default_color: DefaultColor = DEFAULT_COLOR,
            css_variable_prefix: str = DEFAULT_CSS_VARIABLE_PREFIX,
            include_explanation: bool = True,
    ) -> TokenTree:
        self._themes_for(themes)
        merged = self.code_to_tokens_with_themes(
            code, lang, themes, include_explanation, default_color,
        )
        return themed_lines(merged, default_color, css_variable_prefix)

    def code_to_html_dual_themes(
            self,
            code: str,
            lang: str,
            themes: Dict[str, str],
            default_color: DefaultColor = DEFAULT_COLOR,
            css_variable_prefix: str = DEFAULT_CSS_VARIABLE_PREFIX,
            line_options: Sequence[LineOption] = (),
            elements: ElementsOptions = ElementsOptions(),
            merge_whitespaces: bool = True,
    ) -> str:
        resolved = self._themes_for(themes)
        tokens = self.code_to_themed_tokens_dual_themes(
            code, lang, themes, default_color, css_variable_prefix,
            include_explanation=False,
        )
        theme_names = ' '.join(theme.name for theme in resolved.values())
        return render_to_html(
            tokens,
            HtmlRendererOptions(
                lang=lang,
                theme_name=f'shiki-themes {theme_names}',
                root_style=root_style(
                    resolved, default_color, css_variable_prefix,
                ),
                line_options=tuple(line_options),
                elements=elements,
                merge_whitespaces=merge_whitespaces,
            ),
        )
