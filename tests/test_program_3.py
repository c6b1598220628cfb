import builtins
from pathlib import Path
from psd.__main__ import main

PROGRAMS = Path(__file__).parent / 'programs'


def test_program_3_sum(monkeypatch, capsys):
    monkeypatch.setattr(builtins, 'input', lambda prompt='': '5')
    main(['--no-banner', str(PROGRAMS / 'program_3.psd')])
    out = capsys.readouterr().out.strip()
    assert out == 'sum 15'


def test_program_3_zero_iterations(monkeypatch, capsys):
    monkeypatch.setattr(builtins, 'input', lambda prompt='': '0')
    main(['--no-banner', str(PROGRAMS / 'program_3.psd')])
    out = capsys.readouterr().out.strip()
    assert out == 'sum 0'
