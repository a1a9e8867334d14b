import logging
from itertools import count
import mpmath as mp
import pytest
from FINV.lib import pslq_utils
from FINV.lib.pslq_utils import (Outcome, InternalInvariantViolation, pslq, find_relation, validate,
                                 decompose, hermite_reduce, iterate, default_gamma)


def as_coeffs(relation):
    return [c for c, _ in relation]

def proportional_to(coeffs, expected):
    return coeffs in (expected, [-c for c in expected])

def check_state(state, tol):
    n = state.n
    A = mp.matrix([[int(a) for a in row] for row in state.A])
    B = mp.matrix([[int(b) for b in row] for row in state.B])
    AB = A * B
    assert all(AB[i,j] == int(i == j) for i in range(n) for j in range(n))
    norm = mp.sqrt(state.s[0])
    for j in range(n):
        expected = mp.fsum(state.x[k] * int(state.B[k][j]) for k in range(n)) / norm
        assert abs(state.y[j] - expected) < tol
    for i in range(n):
        for j in range(i + 1, n - 1):
            assert abs(state.H[i,j]) < tol


# ==============================================================================
# Validator
# ==============================================================================

def test_unsorted_input_is_rejected(caplog):
    with caplog.at_level(logging.WARNING, logger='FINV'):
        res = pslq([2, 1])
    assert res.outcome == Outcome.PRECONDITION_VIOLATION
    assert res.relation == []
    assert 'sorted' in res.diagnostic
    assert any('sorted' in r.getMessage() for r in caplog.records)

@pytest.mark.parametrize('values, gamma, message', [
    ([1], None, 'At least two'),
    ([], None, 'At least two'),
    ([1, 1], None, 'sorted'),
    ([0, 1], None, 'positive'),
    ([-2, 1], None, 'positive'),
    ([mp.mpf('1e-20'), 1], None, 'Super small'),
    ([1, mp.inf], None, 'finite'),
    ([1, mp.nan], None, 'finite'),
    ([mp.nan, 1, 2], None, 'finite'),
    ([1, 2], 1, 'gamma'),
    ([1, 2], 2 / mp.sqrt(3), 'gamma'),
])
def test_preconditions(values, gamma, message):
    res = pslq(values, gamma)
    assert res.outcome == Outcome.PRECONDITION_VIOLATION
    assert message in res.diagnostic
    assert find_relation(values, gamma) == []

def test_validate_accepts_good_input():
    assert validate([mp.mpf(1), mp.mpf(2)], default_gamma()) is None
    assert validate([mp.mpf(1), mp.mpf(2)], mp.mpf(10)) is None

def test_precondition_order():
    # unsorted is reported before nonpositive
    assert 'sorted' in validate([mp.mpf(1), mp.mpf(-1)], default_gamma())


# ==============================================================================
# Decomposer and Reducer
# ==============================================================================

def test_decomposition_lemma():
    mp.mp.dps = 30
    x = [mp.sqrt(2), mp.sqrt(3), mp.pi, mp.mpf(5)]
    state = decompose(x, default_gamma())
    n = len(x)
    assert state.H.rows == n and state.H.cols == n - 1
    assert state.s[n-1] == x[n-1]**2
    assert abs(state.s[0] - mp.fsum(t**2 for t in x)) < mp.mpf(10)**-25
    assert abs(mp.mnorm(state.H, 'f')**2 - (n - 1)) < mp.mpf(10)**-25
    v = mp.matrix([x]) * state.H
    assert all(abs(v[0,j]) < mp.mpf(10)**-25 for j in range(n - 1))
    for i in range(n):
        for j in range(i + 1, n - 1):
            assert state.H[i,j] == 0
    check_state(state, mp.mpf(10)**-25)

def test_decomposition_failure_raises(monkeypatch):
    monkeypatch.setattr(pslq_utils.ctx, 'mnorm', lambda H, p: mp.mpf(2))
    with pytest.raises(InternalInvariantViolation):
        decompose([mp.mpf(1), mp.mpf(2), mp.mpf(3)], default_gamma())

def test_decomposition_failure_is_not_swallowed(monkeypatch):
    monkeypatch.setattr(pslq_utils.ctx, 'mnorm', lambda H, p: mp.mpf(2))
    with pytest.raises(InternalInvariantViolation):
        pslq([1, 2, 3])

def test_hermite_reduce():
    mp.mp.dps = 30
    x = [mp.mpf(1), mp.sqrt(2), mp.sqrt(3), mp.sqrt(5), mp.mpf(7)]
    state = decompose(x, default_gamma())
    original = state.H.copy()
    hermite_reduce(state)
    n, tol = state.n, mp.mpf(10)**-25
    for i in range(n):
        for j in range(min(i, n - 1)):
            assert abs(state.H[i,j]) <= abs(state.H[j,j]) / 2 + tol
    A = mp.matrix([[int(a) for a in row] for row in state.A])
    AH = A * original
    for i in range(n):
        for j in range(n - 1):
            assert abs(AH[i,j] - state.H[i,j]) < tol
    check_state(state, tol)


# ==============================================================================
# IterationEngine and RelationExtractor
# ==============================================================================

def test_exact_rational_relation():
    res = pslq([1, 2])
    assert res.found
    assert proportional_to(res.coeffs, [2, -1])
    assert [v for _, v in res.relation] == [1, 2]

def test_scaled_irrational_relation():
    assert proportional_to(as_coeffs(find_relation([mp.pi, 2 * mp.pi])), [2, -1])

def test_machin_formula():
    with mp.workdps(30):
        relation = find_relation([mp.acot(239), mp.acot(5), mp.pi / 4])
    assert proportional_to(as_coeffs(relation), [1, -4, 1])

def test_logarithms():
    mp.mp.dps = 30
    relation = find_relation([mp.ln(2), mp.ln(3), mp.ln(6)])
    assert proportional_to(as_coeffs(relation), [1, 1, -1])

def test_zero_coefficients_are_dropped():
    mp.mp.dps = 30
    res = pslq([1, mp.sqrt(2), 2])
    assert res.found
    assert proportional_to(res.coeffs, [2, 0, -1])
    assert len(res.relation) == 2
    assert proportional_to(as_coeffs(res.relation), [2, -1])

@pytest.mark.parametrize('make_values', [
    lambda: [1, 2],
    lambda: [mp.pi, 2 * mp.pi],
    lambda: [mp.ln(2), mp.ln(3), mp.ln(6)],
    lambda: [mp.acot(239), mp.acot(5), mp.pi / 4],
    lambda: [mp.mpf(1), mp.sqrt(2), 1 + mp.sqrt(2)],
])
def test_relation_holds(make_values):
    mp.mp.dps = 30
    values = make_values()
    relation = find_relation(values)
    assert relation
    coeffs = as_coeffs(relation)
    assert all(type(c) is int and c for c in coeffs)
    tol = mp.sqrt(mp.eps) * max(abs(c) for c in coeffs) * len(values)
    assert abs(mp.fsum(c * v for c, v in relation)) < tol

def test_deterministic():
    mp.mp.dps = 30
    values = [mp.mpf(1), mp.sqrt(2), mp.sqrt(3), 3 * mp.sqrt(2) - mp.sqrt(3) + 1]
    first = pslq(sorted(values))
    second = pslq(sorted(values))
    assert first.found
    assert first.coeffs == second.coeffs
    assert first.iterations == second.iterations

def test_no_relation_at_bounded_precision():
    res = pslq([1, mp.sqrt(2), mp.sqrt(3)], max_norm_bound=10**3, dps=15)
    assert res.outcome == Outcome.NO_RELATION_FOUND
    assert res.relation == []
    assert res.norm_bound >= 10**3
    assert res.iterations > 0

def test_iteration_cap():
    mp.mp.dps = 30
    res = pslq([1, mp.sqrt(2), mp.sqrt(3)], max_iterations=1)
    assert res.outcome == Outcome.MAX_ITERATIONS_EXCEEDED
    assert res.iterations == 1
    assert res.relation == []
    assert res.outcome != Outcome.NO_RELATION_FOUND

def test_timeout(monkeypatch):
    ticks = count(0, 100)
    monkeypatch.setattr(pslq_utils, 'time', lambda: next(ticks))
    res = pslq([1, mp.sqrt(2), mp.sqrt(3)], timeout_sec=1, timeout_check_freq=1)
    assert res.outcome == Outcome.MAX_ITERATIONS_EXCEEDED
    assert res.iterations == 0

def test_precision_exhausted_before_loop(monkeypatch, caplog):
    monkeypatch.setattr(pslq_utils, '_norm_bound', lambda state: None)
    with caplog.at_level(logging.WARNING, logger='FINV'):
        res = pslq([1, mp.sqrt(2), mp.sqrt(3)])
    assert res.outcome == Outcome.PRECISION_EXHAUSTED
    assert res.relation == []
    assert res.iterations == 0
    assert 'Precision exhausted' in res.diagnostic
    assert any('Precision exhausted' in r.getMessage() for r in caplog.records)

def test_precision_exhausted_in_loop(monkeypatch):
    monkeypatch.setattr(pslq_utils, '_pivot', lambda state: -1)
    res = pslq([1, mp.sqrt(2), mp.sqrt(3)])
    assert res.outcome == Outcome.PRECISION_EXHAUSTED
    assert res.relation == []
    assert res.iterations == 1
    assert 'Precision exhausted after 1 iterations' in res.diagnostic

def test_precision_exhausted_at_corner(monkeypatch):
    monkeypatch.setattr(pslq_utils, '_pivot', lambda state: 0)
    monkeypatch.setattr(pslq_utils, '_remove_corner', lambda state, m: False)
    res = pslq([1, mp.sqrt(2), mp.sqrt(3), mp.sqrt(5)])
    assert res.outcome == Outcome.PRECISION_EXHAUSTED
    assert res.relation == []
    assert 'Precision exhausted' in res.diagnostic

def test_vanished_ignores_large_coefficients():
    mp.mp.dps = 30
    state = decompose([mp.mpf(1), mp.sqrt(2), mp.sqrt(3)], default_gamma())
    state.y[1] = mp.mpf(0)
    assert pslq_utils._vanished(state, mp.mpf(10)**3) == 1
    state.B[0][1] = pslq_utils.mpz(10**6)
    assert pslq_utils._vanished(state, mp.mpf(10)**3) is None
    assert pslq_utils._vanished(state, mp.mpf(10)**7) == 1

def test_dps_is_restored():
    mp.mp.dps = 20
    pslq([1, 2], dps=40)
    assert mp.mp.dps == 20

def test_state_invariants_during_iteration():
    mp.mp.dps = 30
    x = [mp.mpf(1), mp.sqrt(2), mp.sqrt(3), mp.sqrt(5)]
    state = decompose(x, default_gamma())
    hermite_reduce(state)
    outcome, k = iterate(state, max_iterations=5)
    assert outcome == Outcome.MAX_ITERATIONS_EXCEEDED
    assert k is None
    assert state.iteration == 5
    check_state(state, mp.mpf(10)**-25)


# ==============================================================================
# Tracing
# ==============================================================================

def test_trace_goes_to_given_logger(caplog):
    logger = logging.getLogger('test.trace')
    with caplog.at_level(logging.DEBUG, logger='test.trace'):
        pslq([1, mp.sqrt(2), mp.sqrt(3)], logger=logger, max_norm_bound=10**3, dps=15)
    messages = [r.getMessage() for r in caplog.records if r.name == 'test.trace']
    assert any('norm bound' in m for m in messages)

def test_found_is_traced(caplog):
    logger = logging.getLogger('test.trace')
    with caplog.at_level(logging.DEBUG, logger='test.trace'):
        pslq([1, 2], logger=logger)
    assert any('FOUND' in r.getMessage() for r in caplog.records if r.name == 'test.trace')

def test_no_trace_without_logger(caplog):
    with caplog.at_level(logging.DEBUG):
        pslq([1, mp.sqrt(2), mp.sqrt(3)], max_norm_bound=10**3, dps=15)
    assert not any('norm bound:' in r.getMessage() and r.levelno == logging.DEBUG for r in caplog.records)
