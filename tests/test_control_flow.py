import pytest

from psd.errors import PsdError
from psd.interpreter import Interpreter, run_program, split_assignment


def run(kamus, algoritma, inputs=()):
    interp = Interpreter(read_line=iter(inputs).__next__)
    interp.declare(kamus)
    return interp.execute(algoritma)


def wrap(kamus, algoritma):
    return '\n'.join(['program test', 'kamus'] + kamus + ['algoritma'] + algoritma + ['endprogram'])


def test_output_joins_arguments_with_spaces():
    assert run([], ['output("a", 1, true)']) == ['a 1 true']
    assert run([], ['output()']) == ['']


def test_end_to_end_variable():
    source = wrap(['n : integer'], ['n = 5', 'output(n)'])
    assert run_program(source) == ['5']


def test_if_else_chain():
    kamus = ['n : integer']
    body = [
        'if n < 0 then',
        '    output("negative")',
        'else if n = 0 then',
        '    output("zero")',
        'else if n < 10 then',
        '    output("small")',
        'else',
        '    output("big")',
        'endif',
        'output("done")',
    ]
    for value, expected in ((-3, 'negative'), (0, 'zero'), (4, 'small'), (50, 'big')):
        assert run(kamus, [f'n = {value}'] + body) == [expected, 'done']


def test_nested_if_inside_false_branch_is_skipped():
    body = [
        'if false then',
        '    if true then',
        '        output("inner")',
        '    else',
        '        output("inner else")',
        '    endif',
        'else',
        '    output("outer else")',
        'endif',
    ]
    assert run([], body) == ['outer else']


def test_nested_if_in_true_branch_skips_outer_else():
    body = [
        'if true then',
        '    if false then',
        '        output("a")',
        '    else',
        '        output("b")',
        '    endif',
        'else',
        '    output("c")',
        'endif',
    ]
    assert run([], body) == ['b']


def test_for_loop_counts_inclusive():
    assert run(['i : integer'], ['for i = 1 to 3 do', 'output(i)', 'endfor']) == ['1', '2', '3']


def test_for_loop_with_start_past_end_runs_zero_times():
    out = run(['i : integer'], ['for i = 5 to 1 do', 'output(i)', 'endfor', 'output("after", i)'])
    assert out == ['after 6']


def test_statements_after_endfor_run_for_any_trip_count():
    body = ['for i = START to 1 do', 'output(i)', 'endfor; output("tail", i)']
    assert run(['i : integer'], [line.replace('START', '5') for line in body]) == ['tail 6']
    assert run(['i : integer'], [line.replace('START', '1') for line in body]) == ['1', 'tail 2']


def test_nested_for_loops():
    kamus = ['i, j : integer']
    body = [
        'for i = 1 to 2 do',
        '    for j = i to 2 do',
        '        output(i, j)',
        '    endfor',
        'endfor',
    ]
    assert run(kamus, body) == ['1 1', '1 2', '2 2']


def test_while_false_runs_zero_times():
    assert run([], ['while false do', 'output("x")', 'endwhile', 'output("end")']) == ['end']


def test_while_loop():
    body = ['n = 3', 'while n > 0 do', '    output(n)', '    n -= 1', 'endwhile']
    assert run(['n : integer'], body) == ['3', '2', '1']


def test_repeat_loops_until_condition_is_true():
    body = ['n = 1', 'repeat', '    n *= 2', 'untuk n >= 20', 'output(n)']
    assert run(['n : integer'], body) == ['32']


def test_repeat_body_runs_once_when_condition_starts_true():
    assert run([], ['repeat', 'output("once")', 'untuk true']) == ['once']


def test_semicolon_separated_statements():
    assert run(['a, b : integer'], ['a = 1; b = a + 1; output(a, b)']) == ['1 2']


def test_compound_assignment():
    body = ['x = 10', 'x += 5', 'x -= 3', 'x *= 2', 'x /= 4', 'output(x)']
    assert run(['x : real'], body) == ['6.0']
    assert run(['s : string'], ['s = "ab"', 's += "cd"', 'output(s)']) == ['abcd']


def test_input_tokens_are_consumed_in_order():
    kamus = ['a, b, c : integer', 'name : string']
    body = ['input(a, b)', 'input(c)', 'input(name)', 'output(a + b + c, name)']
    assert run(kamus, body, inputs=['1 2 3', '', 'ada']) == ['6 ada']


def test_input_past_end_is_an_error():
    with pytest.raises(PsdError) as exc:
        run(['a : integer'], ['input(a)'], inputs=[])
    assert exc.value.name == 'InputError'


@pytest.mark.parametrize('kamus, body, kind, line', [
    (['n : integer'], ['n = 1', 'n = "x"'], 'CastError', 2),
    ([], ['output(missing)'], 'NameError', 1),
    (['n : integer'], ['if n then', 'endif'], 'EvaluationError', 1),
    ([], ['if false then', 'output(1)'], 'ParseError', 1),
    ([], ['output(1)', 'endwhile'], 'ParseError', 2),
    ([], ['untuk true'], 'ParseError', 1),
    ([], ['if true', 'endif'], 'ParseError', 1),
    ([], ['launch rockets'], 'ParseError', 1),
    (['const K : integer = 1'], ['for K = 1 to 2 do', 'endfor'], 'ConstError', 1),
    (['a : integer[2]'], ['a[2] = 1'], 'BoundsError', 1),
    (['x : integer'], ['x = 1 div 0'], 'EvaluationError', 1),
])
def test_runtime_errors_carry_line_numbers(kamus, body, kind, line):
    with pytest.raises(PsdError) as exc:
        run(kamus, body)
    assert exc.value.name == kind
    assert exc.value.line == line


def test_error_line_is_source_line_number():
    source = wrap(['n : integer'], ['n = 1', '', 'n = n div 0'])
    with pytest.raises(PsdError) as exc:
        run_program(source)
    assert exc.value.line == 7
    assert exc.value.statement == 'n = n div 0'
    assert exc.value.report() == 'Error at line 7:\n>>> n = n div 0\nEvaluationError: ' + exc.value.err.message


def test_output_before_error_is_kept():
    interp = Interpreter()
    interp.declare(['n : integer'])
    with pytest.raises(PsdError):
        interp.execute(['output("before")', 'n = "oops"'])
    assert interp.output == ['before']


@pytest.mark.parametrize('statement, expected', [
    ('x = 1', ('x', '', '1')),
    ('a[i] = b = c', ('a[i]', '', 'b = c')),
    ('x += 2', ('x', '+', '2')),
    ('p.name = "a=b"', ('p.name', '', '"a=b"')),
    ('a[i = 1] = 2', ('a[i = 1]', '', '2')),
    ('x <= 1', None),
    ('output(x = 1)', None),
    ('x =', None),
])
def test_split_assignment(statement, expected):
    assert split_assignment(statement) == expected


def test_outputf_keeps_the_line_open():
    body = ['for i = 1 to 3 do', '    outputf("%d", i)', 'endfor', 'output("!")', 'outputf("x=%s", 2.5)']
    assert run(['i : integer'], body) == ['123!', 'x=2.5']


def test_outputf_formats_values():
    body = ['outputf("angka: %d, str: %s", 10, "tes")']
    assert run([], body) == ['angka: 10, str: tes']
    assert run([], ['outputf("hi")', 'output()']) == ['hi']


@pytest.mark.parametrize('statement, kind', [
    ('outputf(5, 1)', 'EvaluationError'),
    ('outputf()', 'ParseError'),
    ('outputf("%d", "ten")', 'EvaluationError'),
    ('inputf()', 'ParseError'),
])
def test_formatted_io_errors(statement, kind):
    with pytest.raises(PsdError) as exc:
        run([], [statement])
    assert exc.value.name == kind


def test_inputf_ignores_the_format():
    kamus = ['a : integer', 'w : string']
    body = ['inputf("%d %s", a, w)', 'output(a * 2, w)']
    assert run(kamus, body, inputs=['21 word']) == ['42 word']
