'''
PSLQ integer relation detection, following the floating point formulation in
David Bailey's "Parallel integer relation detection: techniques and applications"
(https://www.davidhbailey.com/dhbpapers/cpslq.pdf, section 3).

Everything runs on mpmath's mpf at the caller's working precision, while the
transformation matrices A and B are kept as exact gmpy2 integers.
'''
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from logging import getLogger, Logger, DEBUG
from time import time
from typing import List, Tuple
from gmpy2 import mpz
import mpmath as mp
from FINV.lib.config import pslq_config

LOGGER_NAME = 'FINV'

ctx = mp.mp

class Outcome(Enum):
    FOUND = 0
    PRECONDITION_VIOLATION = 1
    NO_RELATION_FOUND = 2
    MAX_ITERATIONS_EXCEEDED = 3
    PRECISION_EXHAUSTED = 4

class InternalInvariantViolation(Exception):
    pass

@dataclass
class PSLQState:
    x: List[mp.mpf]
    s: List[mp.mpf] # partial sums of squares, s[i] = x[i]**2 + ... + x[n-1]**2
    H: mp.matrix
    A: List[List[mpz]]
    B: List[List[mpz]]
    y: List[mp.mpf]
    gamma: mp.mpf
    iteration: int = 0
    norm_bound: mp.mpf or None = None

    @property
    def n(self) -> int:
        return len(self.x)

@dataclass
class PSLQResult:
    outcome: Outcome
    relation: List[Tuple[int, mp.mpf]] = field(default_factory=list)
    coeffs: List[int] = field(default_factory=list) # same length as the input, zeros included
    diagnostic: str = ''
    iterations: int = 0
    norm_bound: mp.mpf or None = None

    @property
    def found(self) -> bool:
        return self.outcome == Outcome.FOUND

def default_gamma() -> mp.mpf:
    return 2 / ctx.sqrt(3) + ctx.mpf('0.01')

def _tolerance() -> mp.mpf:
    return ctx.sqrt(ctx.eps)

def validate(x: List[mp.mpf], gamma: mp.mpf) -> str or None:
    '''
    returns None if PSLQ can run on x with this gamma, otherwise
    a message describing the first violated precondition.
    '''
    if len(x) < 2:
        return 'At least two values are required to find an integer relation.'
    if any(b <= a for a, b in zip(x, x[1:])):
        return 'Elements must be sorted in strictly increasing order.'
    tol = _tolerance()
    for t in x:
        if not ctx.isfinite(t):
            return 'Elements must be finite.'
        if t <= 0:
            return 'Elements must be positive: zero gives trivial relations, and the algorithm is reflection invariant so negative values should be negated.'
        if t < tol:
            return 'Super small elements give spurious relations; more precision is required.'
    if gamma <= 2 / ctx.sqrt(3):
        return 'gamma > 2/sqrt(3) is required.'
    tau = 1 / ctx.sqrt(ctx.mpf(1)/4 + 1/(gamma*gamma))
    if not 1 < tau < 2:
        return 'tau in (1, 2) is required.'
    return None

def _identity(n: int) -> List[List[mpz]]:
    return [[mpz(int(i == j)) for j in range(n)] for i in range(n)]

def decompose(x: List[mp.mpf], gamma: mp.mpf) -> PSLQState:
    '''
    builds the lower trapezoidal H_x orthogonal to x, and verifies
    Lemma 1 of the reference numerically. a failed check is a bug here,
    not a problem with the input, so it raises instead of returning.
    '''
    n = len(x)
    s = [None] * n
    s[n-1] = x[n-1] * x[n-1]
    for i in range(n - 2, -1, -1):
        s[i] = s[i+1] + x[i] * x[i]

    H = ctx.matrix(n, n - 1) # above the diagonal stays zero
    for i in range(n):
        for j in range(min(i + 1, n - 1)):
            if i == j:
                H[i,i] = ctx.sqrt(s[i+1] / s[i])
            else:
                H[i,j] = -x[i] * x[j] / ctx.sqrt(s[j] * s[j+1])

    norm = ctx.sqrt(s[0])
    y = [t / norm for t in x]

    tol = _tolerance()
    if abs(ctx.mnorm(H, 'f')**2 / (n - 1) - 1) > tol:
        raise InternalInvariantViolation('|H_x|^2 != n - 1, Lemma 1.ii failed numerically')
    v = ctx.matrix([y]) * H
    if any(abs(v[0,j]) / (n - 1) > tol for j in range(n - 1)):
        raise InternalInvariantViolation('x^T H_x != 0, Lemma 1.iii failed numerically')

    return PSLQState(x, s, H, _identity(n), _identity(n), y, gamma)

def _reduce_row(state: PSLQState, i: int, j: int, t: int):
    # row i -= t * row j, applied to H (only columns <= j are nonzero in row j),
    # A, and inversely to the columns of B
    H, A, B = state.H, state.A, state.B
    state.y[j] += t * state.y[i]
    for k in range(j + 1):
        H[i,k] -= t * H[j,k]
    for k in range(state.n):
        A[i][k] -= t * A[j][k]
        B[k][j] += t * B[k][i]

def _reduce_pair(state: PSLQState, i: int, j: int):
    H = state.H
    if not H[j,j]: # nothing sensible to divide by, leave the pair alone
        return
    t = int(ctx.nint(H[i,j] / H[j,j]))
    if t:
        _reduce_row(state, i, j, t)

def hermite_reduce(state: PSLQState):
    '''hermite reduction of the freshly decomposed H, before the main loop'''
    for i in range(1, state.n):
        for j in range(i - 1, -1, -1):
            _reduce_pair(state, i, j)

def _pivot(state: PSLQState) -> int:
    # m maximizing gamma^(i+1) |H_ii|, -1 if every diagonal entry vanished
    H = state.H
    m, max_term, gammai = -1, 0, state.gamma
    for i in range(state.n - 1):
        term = gammai * abs(H[i,i])
        if term > max_term:
            m, max_term = i, term
        gammai *= state.gamma
    return m

def _swap(state: PSLQState, m: int):
    state.y[m], state.y[m+1] = state.y[m+1], state.y[m]
    state.A[m], state.A[m+1] = state.A[m+1], state.A[m]
    ctx.swap_row(state.H, m, m + 1)
    for row in state.B:
        row[m], row[m+1] = row[m+1], row[m]

def _remove_corner(state: PSLQState, m: int) -> bool:
    H = state.H
    t0 = ctx.sqrt(H[m,m]**2 + H[m,m+1]**2)
    if not t0:
        return False
    t1 = H[m,m] / t0
    t2 = H[m,m+1] / t0
    for i in range(m, state.n):
        t3 = H[i,m]
        t4 = H[i,m+1]
        H[i,m] = t1*t3 + t2*t4
        H[i,m+1] = -t2*t3 + t1*t4
    return True

def _vanished(state: PSLQState, max_norm_bound: mp.mpf) -> int or None:
    # index of a y entry that crossed the threshold with acceptably small coefficients.
    # if more than one did, the smallest wins
    tol = _tolerance()
    for i in sorted(range(state.n), key=lambda i: abs(state.y[i])):
        if abs(state.y[i]) >= tol:
            break
        if ctx.norm([int(row[i]) for row in state.B]) <= max_norm_bound:
            return i
    return None

def _norm_bound(state: PSLQState) -> mp.mpf or None:
    H = state.H
    max_diag = max(abs(H[i,i]) for i in range(state.n - 1))
    return 1 / max_diag if max_diag else None

def extract(state: PSLQState, k: int) -> Tuple[List[Tuple[int, mp.mpf]], List[int]]:
    '''reads the relation off column k of B'''
    coeffs = [int(row[k]) for row in state.B]
    return [(c, t) for c, t in zip(coeffs, state.x) if c], coeffs

def iterate(state: PSLQState, logger: Logger or None = None, **kwargs) -> Tuple[Outcome, int or None]:
    '''
    runs the main PSLQ loop on an already reduced state. returns the outcome,
    and if a relation was found, the index of the column of B that holds it.
    '''
    kwargs = {**pslq_config, **kwargs}
    max_norm_bound = ctx.mpf(kwargs['max_norm_bound'])
    max_iterations = kwargs['max_iterations']
    timeout_sec, timeout_check_freq = kwargs['timeout_sec'], kwargs['timeout_check_freq']
    trace = logger is not None and logger.isEnabledFor(DEBUG)
    n = state.n
    start = time()

    state.norm_bound = _norm_bound(state)
    if state.norm_bound is None:
        return Outcome.PRECISION_EXHAUSTED, None
    k = _vanished(state, max_norm_bound) # the initial reduction can already be enough
    if k is not None:
        if trace:
            logger.debug('FOUND relation before the first iteration, error: %s', ctx.nstr(abs(state.y[k]), 3))
        return Outcome.FOUND, k
    if state.norm_bound >= max_norm_bound:
        return Outcome.NO_RELATION_FOUND, None

    while True:
        if state.iteration >= max_iterations:
            return Outcome.MAX_ITERATIONS_EXCEEDED, None
        if timeout_sec and state.iteration % timeout_check_freq == 0 and time() - start > timeout_sec:
            return Outcome.MAX_ITERATIONS_EXCEEDED, None
        state.iteration += 1

        m = _pivot(state)
        if m < 0:
            return Outcome.PRECISION_EXHAUSTED, None
        _swap(state, m)
        if m < n - 2 and not _remove_corner(state, m):
            # a zero here probably means the precision has been exhausted
            return Outcome.PRECISION_EXHAUSTED, None
        for i in range(m + 1, n):
            for j in range(min(i - 1, m + 1), -1, -1):
                _reduce_pair(state, i, j)

        k = _vanished(state, max_norm_bound)
        if k is not None:
            if trace:
                logger.debug('FOUND relation at iteration %i, error: %s', state.iteration, ctx.nstr(abs(state.y[k]), 3))
            return Outcome.FOUND, k

        state.norm_bound = _norm_bound(state)
        if state.norm_bound is None:
            return Outcome.PRECISION_EXHAUSTED, None
        if trace:
            logger.debug('%i/%i: pivot %i, error: %s, norm bound: %s', state.iteration, max_iterations, m,
                         ctx.nstr(min(abs(t) for t in state.y), 3), ctx.nstr(state.norm_bound, 5))
        if state.norm_bound >= max_norm_bound:
            return Outcome.NO_RELATION_FOUND, None

def _pslq(values, gamma, logger, kwargs) -> PSLQResult:
    x = [ctx.mpf(v) for v in values]
    gamma = default_gamma() if gamma is None else ctx.mpf(gamma)
    diagnostic = validate(x, gamma)
    if diagnostic:
        getLogger(LOGGER_NAME).warning(f'PSLQ precondition violated: {diagnostic}')
        return PSLQResult(Outcome.PRECONDITION_VIOLATION, diagnostic=diagnostic)

    state = decompose(x, gamma)
    hermite_reduce(state)
    if logger is not None and logger.isEnabledFor(DEBUG):
        logger.debug('PSLQ using dps %i, n = %i and gamma %s', ctx.dps, state.n, ctx.nstr(gamma, 5))
    outcome, k = iterate(state, logger, **kwargs)

    if outcome == Outcome.FOUND:
        relation, coeffs = extract(state, k)
        return PSLQResult(outcome, relation, coeffs, iterations=state.iteration, norm_bound=state.norm_bound)

    bound = ctx.nstr(state.norm_bound, 5) if state.norm_bound is not None else 'unknown'
    if outcome == Outcome.NO_RELATION_FOUND:
        diagnostic = f'No integer relation with norm less than {bound} exists.'
        getLogger(LOGGER_NAME).info(diagnostic)
    elif outcome == Outcome.MAX_ITERATIONS_EXCEEDED:
        diagnostic = f'Search budget exhausted after {state.iteration} iterations, norm bound: {bound}.'
        getLogger(LOGGER_NAME).warning(diagnostic)
    else:
        diagnostic = f'Precision exhausted after {state.iteration} iterations, norm bound: {bound}.'
        getLogger(LOGGER_NAME).warning(diagnostic)
    return PSLQResult(outcome, diagnostic=diagnostic, iterations=state.iteration, norm_bound=state.norm_bound)

def pslq(values, gamma=None, logger: Logger or None = None, **kwargs) -> PSLQResult:
    r'''
    Given strictly increasing positive reals `x = [x_0, ..., x_{n-1}]`, ``pslq(x)``
    looks for integers `c_0, ..., c_{n-1}`, not all zero, such that

    .. math ::

        |c_0 x_0 + c_1 x_1 + ... + c_{n-1} x_{n-1}| < \sqrt{\epsilon}

    where `\epsilon` is the machine epsilon of the working precision.

    ``gamma`` must exceed `2/\sqrt 3`, defaults to `2/\sqrt 3 + 0.01`.
    ``logger``, if given, receives a DEBUG trace of every iteration.
    Other keyword arguments override ``FINV.lib.config.pslq_config``:
        'max_norm_bound': Stop once any relation must have a larger Euclidean norm than this,
                          relations found with larger coefficients are ignored.
        'max_iterations': Stop after this many iterations no matter what.
        'timeout_sec': If nonzero, stop after this many seconds.
        'timeout_check_freq': Only check for timeout every this many iterations.
        'dps': If given, run at this many decimal digits instead of the current mp.dps.

    Never raises because of bad input; the returned ``PSLQResult.outcome``
    says whether a relation was found, and if not, why.
    '''
    kwargs = {**pslq_config, **kwargs}
    if kwargs['dps']:
        with ctx.workdps(kwargs['dps']):
            return _pslq(values, gamma, logger, kwargs)
    return _pslq(values, gamma, logger, kwargs)

def find_relation(values, gamma=None, logger: Logger or None = None, **kwargs) -> List[Tuple[int, mp.mpf]]:
    '''
    (coefficient, value) pairs of an integer relation between values, zero
    coefficients omitted. empty if there is none, use pslq() to learn why.
    '''
    return pslq(values, gamma, logger, **kwargs).relation
