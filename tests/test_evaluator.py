import pytest

from psd.errors import PsdError
from psd.evaluator import ExpressionEvaluator
from psd.types import TypeRegistry
from psd.values import ArrayVal, RecordVal


@pytest.fixture
def evaluator():
    return ExpressionEvaluator(TypeRegistry())


@pytest.fixture
def env():
    return {
        'n': 7,
        'x': 2.5,
        'flag': True,
        'name': 'budi',
        'nums': ArrayVal([10, 20, 30]),
        'grid': ArrayVal([ArrayVal([1, 2]), ArrayVal([3, 4])]),
        'p': RecordVal('point', {'x': 1, 'tags': ArrayVal(['a', 'b'])}),
    }


@pytest.mark.parametrize('expr, expected', [
    ('1 + 2 * 3', 7),
    ('(1 + 2) * 3', 9),
    ('10 - 4 - 3', 3),
    ('7 / 2', 3.5),
    ('7 div 2', 3),
    ('-7 div 2', -3),
    ('7 mod 3', 1),
    ('-7 mod 3', -1),
    ('n * x', 17.5),
    ('-n + 1', -6),
    ('n > 5 and n < 10', True),
    ('n = 7', True),
    ('n <> 7', False),
    ('x >= 2.5', True),
    ('not flag or n = 7', True),
    ('"ab" + "cd"', 'abcd'),
    ("'a' < 'b'", True),
    ('name = "budi"', True),
    ('nums[1] + nums[2]', 50),
    ('grid[1][0]', 3),
    ('p.x + 1', 2),
    ('p.tags[1]', 'b'),
    ('name[0]', 'b'),
    ('size(nums)', 3),
    ('size(name)', 4),
    ('length(grid[0])', 2),
    ('integer("12") + 1', 13),
    ('real(3)', 3.0),
    ('string(n)', '7'),
    ('boolean("true")', True),
    ("character(name)", 'b'),
    ('abs(-3)', 3),
    ('nums = nums', True),
    ('true and false', False),
])
def test_evaluate(evaluator, env, expr, expected):
    assert evaluator.evaluate(expr, env) == expected


def test_short_circuit_skips_right_operand(evaluator, env):
    # `missing` is undeclared; evaluating it would raise a NameError
    assert evaluator.evaluate('false and missing > 1', env) is False
    assert evaluator.evaluate('true or missing > 1', env) is True
    with pytest.raises(PsdError):
        evaluator.evaluate('true and missing > 1', env)


@pytest.mark.parametrize('expr, kind', [
    ('name + 1', 'EvaluationError'),
    ('flag * 2', 'EvaluationError'),
    ('n and flag', 'EvaluationError'),
    ('x div 2', 'EvaluationError'),
    ('n / 0', 'EvaluationError'),
    ('n mod 0', 'EvaluationError'),
    ('n = "7"', 'EvaluationError'),
    ('flag < true', 'EvaluationError'),
    ('unknown(1)', 'EvaluationError'),
    ('size(1, 2)', 'EvaluationError'),
    ('missing + 1', 'NameError'),
    ('p.z', 'NameError'),
    ('nums[3]', 'BoundsError'),
    ('nums[-1]', 'BoundsError'),
    ('name[9]', 'BoundsError'),
    ('nums[1.0]', 'TypeError'),
    ('n[0]', 'TypeError'),
    ('n.x', 'TypeError'),
    ('1 +', 'ParseError'),
    ('a < b < c', 'ParseError'),
])
def test_evaluation_errors(evaluator, env, expr, kind):
    with pytest.raises(PsdError) as exc:
        evaluator.evaluate(expr, env)
    assert exc.value.name == kind


def test_mismatch_message_names_operator_and_types(evaluator, env):
    with pytest.raises(PsdError) as exc:
        evaluator.evaluate('name - flag', env)
    assert "'-'" in exc.value.err.message
    assert 'string' in exc.value.err.message
    assert 'boolean' in exc.value.err.message


def test_evaluator_does_not_mutate(evaluator, env):
    before = dict(env)
    evaluator.evaluate('nums[0] + size(nums) + p.x', env)
    assert env == before


def test_parsed_expressions_are_cached(evaluator, env):
    evaluator.evaluate('n + 1', env)
    node = evaluator.cache['n + 1']
    evaluator.evaluate(' n + 1 ', env)
    assert evaluator.cache['n + 1'] is node
