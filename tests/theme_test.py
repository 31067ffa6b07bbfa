import pytest

from textmate_html.metadata import encode
from textmate_html.metadata import FontStyle
from textmate_html.theme import match_selector
from textmate_html.theme import resolve
from textmate_html.theme import Theme

THEME = Theme.from_dct({
    'name': 'test',
    'colors': {'foreground': '#100000', 'background': '#aaaaaa'},
    'tokenColors': [
        {'scope': 'foo.bar', 'settings': {'foreground': '#200000'}},
        {'scope': 'foo', 'settings': {'foreground': '#300000'}},
        {'scope': 'parent foo.bar', 'settings': {'foreground': '#400000'}},
    ],
})


@pytest.mark.parametrize(
    ('scope', 'expected'),
    (
        pytest.param(('',), '#100000', id='trivial'),
        pytest.param(('unknown',), '#100000', id='unknown'),
        pytest.param(('foo.bar',), '#200000', id='exact match'),
        pytest.param(('foo.baz',), '#300000', id='prefix match'),
        pytest.param(('foobar',), '#100000', id='prefix is not segment'),
        pytest.param(('src.diff', 'foo.bar'), '#200000', id='nested scope'),
        pytest.param(
            ('foo.bar', 'unrelated'), '#200000',
            id='nested scope not last one',
        ),
        pytest.param(('parent', 'foo.bar'), '#400000', id='parent scope'),
        pytest.param(
            ('parent.x', 'middle', 'foo.bar.baz'), '#400000',
            id='parent scope prefix',
        ),
        pytest.param(('foo.bar', 'foo'), '#300000', id='innermost wins'),
    ),
)
def test_resolve(scope, expected):
    ret = resolve(THEME, scope)
    assert (ret.color or THEME.fg) == expected


def test_from_dct_defaults_from_colors():
    assert THEME.fg == '#100000'
    assert THEME.bg == '#aaaaaa'
    assert THEME.type == 'dark'
    assert THEME.colors['foreground'] == '#100000'


def test_from_dct_defaults_from_scopeless_settings():
    theme = Theme.from_dct({
        'name': 't',
        'type': 'light',
        'settings': [
            {'settings': {'foreground': '#123456', 'background': '#654321'}},
            {'scope': 'a', 'settings': {'foreground': '#111111'}},
        ],
    })
    assert (theme.fg, theme.bg) == ('#123456', '#654321')
    assert len(theme.rules) == 1


def test_from_dct_explicit_fg_bg_win():
    theme = Theme.from_dct({
        'name': 't',
        'fg': '#010101',
        'bg': '#020202',
        'colors': {'editor.foreground': '#999999'},
        'settings': [],
    })
    assert (theme.fg, theme.bg) == ('#010101', '#020202')


def test_from_dct_fallback_colors_by_type():
    theme = Theme.from_dct({'name': 't', 'type': 'light', 'settings': []})
    assert (theme.fg, theme.bg) == ('#000000', '#ffffff')


def test_from_dct_unknown_type():
    with pytest.raises(ValueError):
        Theme.from_dct({'name': 't', 'type': 'sepia', 'settings': []})


def test_scope_lists_and_trailing_commas():
    theme = Theme.from_dct({
        'name': 't',
        'settings': [
            {'scope': 'a, b,', 'settings': {'foreground': '#111111'}},
            {'scope': ['c', 'd e'], 'settings': {'foreground': '#222222'}},
        ],
    })
    assert theme.rules[0].selectors == (('a',), ('b',))
    assert theme.rules[1].selectors == (('c',), ('d', 'e'))
    assert theme.rules[1].scope == 'c, d e'
    assert resolve(theme, ('d', 'e')).color == '#222222'


def test_color_map_reserves_default():
    assert THEME.color_map == (None, '#200000', '#300000', '#400000')
    assert THEME.color_index(None) == 0
    assert THEME.color_index('#300000') == 2


def test_later_rule_wins_ties():
    theme = Theme.from_dct({
        'name': 't',
        'settings': [
            {'scope': 'a', 'settings': {'foreground': '#111111'}},
            {'scope': 'a', 'settings': {'foreground': '#222222'}},
        ],
    })
    ret = resolve(theme, ('a',))
    assert ret.color == '#222222'
    assert [m.rule for m in ret.matched_rules] == list(theme.rules)


def test_fields_cascade_independently():
    theme = Theme.from_dct({
        'name': 't',
        'settings': [
            {
                'scope': 'a',
                'settings': {'foreground': '#aa0000', 'fontStyle': 'italic'},
            },
            {'scope': 'a.b', 'settings': {'fontStyle': 'bold underline'}},
            {'scope': 'a.b', 'settings': {'background': '#00ff00'}},
        ],
    })
    ret = resolve(theme, ('a.b',))
    assert ret.color == '#aa0000'
    assert ret.bg_color == '#00ff00'
    assert ret.font_style == FontStyle.BOLD | FontStyle.UNDERLINE


def test_empty_font_style_resets():
    theme = Theme.from_dct({
        'name': 't',
        'settings': [
            {'scope': 'a', 'settings': {'fontStyle': 'italic'}},
            {'scope': 'a.b', 'settings': {'fontStyle': ''}},
        ],
    })
    assert resolve(theme, ('a',)).font_style == FontStyle.ITALIC
    assert resolve(theme, ('a.b',)).font_style == FontStyle.NONE


def test_no_match_uses_defaults():
    ret = resolve(THEME, ('nothing.here',))
    assert ret.color is None
    assert ret.bg_color is None
    assert ret.font_style == FontStyle.NONE
    assert ret.matched_rules == ()


def test_matched_rules_in_cascade_order():
    ret = resolve(THEME, ('parent', 'foo.bar'))
    assert [m.rule.scope for m in ret.matched_rules] == [
        'foo', 'foo.bar', 'parent foo.bar',
    ]
    assert [m.scope_index for m in ret.matched_rules] == [1, 1, 1]


def test_resolve_is_deterministic():
    first = resolve(THEME, ('foo.bar',))
    resolve(THEME, ('parent', 'foo.bar'))
    resolve(THEME, ('foo.baz',))
    assert resolve(THEME, ('foo.bar',)) == first


@pytest.mark.parametrize(
    ('selector', 'scopes', 'expected'),
    (
        (('a',), ('a',), (0, (0, 1, 0))),
        (('a.b',), ('x', 'a.b.c'), (1, (1, 2, 0))),
        (('x', 'a'), ('x', 'y', 'a'), (2, (2, 1, 1))),
        (('y', 'x', 'a'), ('x', 'y', 'a'), None),
        (('a',), ('b',), None),
        (('a',), (), None),
    ),
)
def test_match_selector(selector, scopes, expected):
    assert match_selector(selector, scopes) == expected


def test_metadata_for():
    expected = encode(FontStyle.NONE, 1, 0)
    assert THEME.metadata_for(('foo.bar',)) == expected


def test_token_style_round_trip():
    metadata = THEME.metadata_for(('foo.baz',))
    style = THEME.token_style(metadata)
    assert style.color == '#300000'
    assert style.bg_color is None
    assert style.font_style == FontStyle.NONE


def test_colors_are_read_only_and_hashable():
    assert 'background' in THEME.colors
    assert THEME.colors.get('missing') is None
    assert sorted(THEME.colors) == ['background', 'foreground']
    assert len(THEME.colors) == 2
    assert not hasattr(THEME.colors, '__setitem__')
    assert hash(THEME) == hash(THEME)


class _CountingRules(tuple):
    hashed = 0

    def __hash__(self):
        type(self).hashed += 1
        return super().__hash__()


def test_cached_lookups_do_not_hash_rules():
    theme = THEME._replace(rules=_CountingRules(THEME.rules))
    first = theme.metadata_for(('foo.bar',))
    for _ in range(10):
        assert theme.metadata_for(('foo.bar',)) == first
        assert resolve(theme, ('foo.bar',)).color == '#200000'
    assert _CountingRules.hashed == 0


def test_themes_compare_by_identity():
    copy = THEME._replace()
    assert copy == copy
    assert copy != THEME
    assert len({THEME, copy, THEME}) == 2
