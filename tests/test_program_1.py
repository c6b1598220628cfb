from pathlib import Path
from psd.__main__ import main

PROGRAMS = Path(__file__).parent / 'programs'


def test_program_1(capsys):
    main(['--no-banner', str(PROGRAMS / 'program_1.psd')])
    out = capsys.readouterr().out.strip()
    assert out == '5'


def test_program_1_banner(capsys):
    main([str(PROGRAMS / 'program_1.psd')])
    out_lines = capsys.readouterr().out.strip().split('\n')
    assert out_lines[0] == '--- Execution Properties ---'
    assert out_lines[1] == 'Program Name: Hello'
    assert out_lines[2].startswith('Execution Time: ')
    assert out_lines[3:] == ['--- Program Output ---', '5']
