from textmate_html.theme import Theme

LIGHT = Theme.from_dct({
    'name': 'test-light',
    'type': 'light',
    'fg': '#000000',
    'bg': '#ffffff',
    'settings': [
        {'scope': 'keyword', 'settings': {'foreground': '#ff0000'}},
        {'scope': 'number', 'settings': {'foreground': '#0000ff'}},
    ],
})

DARK = Theme.from_dct({
    'name': 'test-dark',
    'type': 'dark',
    'fg': '#eeeeee',
    'bg': '#111111',
    'settings': [
        {
            'scope': 'keyword',
            'settings': {'foreground': '#ff8888', 'fontStyle': 'bold'},
        },
        {'scope': 'identifier', 'settings': {'foreground': '#88ff88'}},
    ],
})
