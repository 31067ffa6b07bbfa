from typing import Dict


class HighlightError(Exception):
    pass


class UnknownLanguage(HighlightError):
    def __init__(self, lang: str) -> None:
        super().__init__(f'language not loaded: {lang!r}')
        self.lang = lang


class UnknownTheme(HighlightError):
    def __init__(self, theme: str) -> None:
        super().__init__(f'theme not loaded: {theme!r}')
        self.theme = theme


class GrammarLoadFailure(HighlightError):
    def __init__(self, lang: str, reason: str) -> None:
        super().__init__(f'could not load grammar {lang!r}: {reason}')
        self.lang = lang


class ThemeLengthMismatch(HighlightError):
    def __init__(
            self,
            lengths: Dict[str, int],
            reason: str = 'line length',
    ) -> None:
        desc = ', '.join(f'{k}={v}' for k, v in lengths.items())
        super().__init__(f'themes disagree on {reason}: {desc}')
        self.lengths = lengths


class InvalidLineOption(HighlightError, UserWarning):
    """issued as a warning: the offending line option is skipped"""
