import builtins
from pathlib import Path
from psd.__main__ import main

PROGRAMS = Path(__file__).parent / 'programs'


def test_program_8_bubble_sort(monkeypatch, capsys):
    """All five values come from a single input line."""
    monkeypatch.setattr(builtins, 'input', lambda prompt='': '5 3 9 1 7')
    main(['--no-banner', str(PROGRAMS / 'program_8.psd')])
    out = capsys.readouterr().out.strip()
    assert out == '[1, 3, 5, 7, 9]'
