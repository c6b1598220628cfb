from pathlib import Path
from psd.__main__ import main

PROGRAMS = Path(__file__).parent / 'programs'


def test_program_9_multiplication_table(capsys):
    main(['--no-banner', str(PROGRAMS / 'program_9.psd')])
    out_lines = capsys.readouterr().out.strip().split('\n')
    assert out_lines == ['1,2,3', '2,4,6', '3,6,9']
