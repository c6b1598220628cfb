from datetime import datetime

import pytest

from psd.errors import PsdError
from psd.source import (
    format_report, load_program, split_arguments, split_statements, strip_block_comments,
    strip_line_comment,
)


def test_block_comments_keep_line_count():
    text = 'a\n/* one\ntwo */b\nc'
    stripped = strip_block_comments(text)
    assert stripped.split('\n') == ['a', '', 'b', 'c']


@pytest.mark.parametrize('line, expected', [
    ('x = 1 // set x', 'x = 1'),
    ('output("http://x") // url', 'output("http://x")'),
    ("c = '/' // slash", "c = '/'"),
    ('   // only a comment', ''),
    ('  n = n / 2  ', 'n = n / 2'),
])
def test_strip_line_comment(line, expected):
    assert strip_line_comment(line) == expected


@pytest.mark.parametrize('line, expected', [
    ('a = 1; b = 2', ['a = 1', 'b = 2']),
    ('output("a;b"); x = 1;', ['output("a;b")', 'x = 1']),
    ('', []),
    ('// nothing', []),
])
def test_split_statements(line, expected):
    assert split_statements(line) == expected


def test_split_arguments_respects_nesting():
    assert split_arguments('a, f(b, c), d[1, 2], "x, y", \',\'') == ['a', 'f(b, c)', 'd[1, 2]', '"x, y"', "','"]
    assert split_arguments('   ') == []


def test_load_program_sections():
    text = '\n'.join([
        '/* header',
        '   comment */',
        'program demo',
        'kamus',
        '    n : integer',
        'algoritma',
        '    n = 1',
        '    output(n)',
        'endprogram',
    ])
    program = load_program(text)
    assert program.name == 'demo'
    assert [line.strip() for line in program.kamus] == ['n : integer']
    assert program.kamus_start == 5
    assert [line.strip() for line in program.algoritma] == ['n = 1', 'output(n)']
    assert program.algoritma_start == 7


@pytest.mark.parametrize('text', [
    'kamus\nalgoritma\nendprogram',
    'program p\nalgoritma\nendprogram',
    'program p\nkamus\nendprogram',
    'program p\nkamus\nalgoritma',
    'program p\nalgoritma\nkamus\nendprogram',
    '',
])
def test_load_program_structure_errors(text):
    with pytest.raises(PsdError) as exc:
        load_program(text)
    assert exc.value.name == 'StructureError'
    assert exc.value.report().startswith('[StructureError] invalid program structure')


def test_format_report():
    started = datetime(2024, 3, 9, 14, 5, 7)
    assert format_report('demo', started, ['1', 'two']) == [
        '--- Execution Properties ---',
        'Program Name: demo',
        'Execution Time: 2024-03-09 14:05:07',
        '--- Program Output ---',
        '1',
        'two',
    ]
