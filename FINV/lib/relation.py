from __future__ import annotations
from functools import reduce
from logging import Logger
from operator import add
from typing import Dict, List
from sympy import Symbol, sympify
import mpmath as mp
from FINV.lib.pslq_utils import pslq, ctx

class PSLQRelation:
    coeffs: List[int]
    values: List[mp.mpf]
    names: List[str]
    dps: int

    def __init__(self, coeffs, values, names=None):
        self.coeffs = list(coeffs)
        self.values = list(values)
        self.names = list(names) if names else [f'c{i}' for i in range(len(self.values))]
        self.dps = ctx.dps # the precision the values were found at

    @staticmethod
    def from_pairs(pairs, names=None) -> PSLQRelation:
        '''from the (coefficient, value) pairs that find_relation returns'''
        return PSLQRelation([c for c, _ in pairs], [v for _, v in pairs], names)

    @property
    def terms(self):
        return [(c, v, name) for c, v, name in zip(self.coeffs, self.values, self.names) if c]

    @property
    def residual(self) -> mp.mpf:
        with ctx.workdps(self.dps + 10):
            return abs(ctx.fdot(self.coeffs, self.values))

    @property
    def precision(self) -> int:
        '''how many decimal digits the relation holds to, capped by the precision it was found at'''
        residual = self.residual
        if not residual:
            return self.dps
        with ctx.workdps(self.dps + 10):
            return int(min(ctx.floor(-ctx.log10(residual)), self.dps))

    @property
    def expr(self):
        return sympify(reduce(add, (c * Symbol(name) for c, _, name in self.terms), 0))

    def isolate(self, name: str) -> str:
        symbol = Symbol(name)
        expr = self.expr
        coeff = expr.coeff(symbol)
        if not coeff:
            raise ValueError(f'{name} does not appear in the relation')
        return f'{symbol} = {-(expr - coeff * symbol) / coeff}'

    @staticmethod
    def _render(terms) -> str:
        c, label = terms[0]
        res = f'{c}⋅{label}'
        for c, label in terms[1:]:
            res += f' {"-" if c < 0 else "+"} {abs(c)}⋅{label}'
        return res

    def explain(self) -> str:
        '''
        the relation along with the numeric evidence for it, like
        "As\\n\\t1⋅0.6931471806 + 1⋅1.098612289 - 1⋅1.791759469 = 0.0,\\nit is likely that\\n\\t1⋅ln(2) + 1⋅ln(3) - 1⋅ln(6) = 0."
        '''
        terms = self.terms
        if not terms:
            return str(self)
        with ctx.workdps(self.dps + 10):
            total = ctx.fdot(self.coeffs, self.values)
        numeric = self._render([(c, ctx.nstr(ctx.mpf(v), 10)) for c, v, _ in terms])
        return f'As\n\t{numeric} = {ctx.nstr(total, 5)},\nit is likely that\n\t{self._render([(c, name) for c, _, name in terms])} = 0.'

    def __str__(self):
        terms = self.terms
        if not terms:
            return '0 = 0'
        return self._render([(c, name) for c, _, name in terms]) + ' = 0'

def _as_pairs(dictionary: Dict) -> List:
    # accepts both value -> name and name -> value, returns (value, name) sorted by value.
    # constants are tracked by their position in this list from here on
    pairs = [(ctx.mpf(v), str(k)) if isinstance(k, str) else (ctx.mpf(k), str(v)) for k, v in dictionary.items()]
    return sorted(pairs, key=lambda p: p[0])

def find_named_relation(dictionary: Dict, gamma=None, logger: Logger or None = None, **kwargs) -> PSLQRelation or None:
    with ctx.workdps(kwargs.get('dps') or ctx.dps):
        pairs = _as_pairs(dictionary)
        result = pslq([v for v, _ in pairs], gamma, logger, **kwargs)
        if not result.found:
            return None
        return PSLQRelation(result.coeffs, [v for v, _ in pairs], [name for _, name in pairs])

def describe_relation(dictionary: Dict, gamma=None, logger: Logger or None = None, verbose: bool = False, **kwargs) -> str:
    '''
    runs PSLQ on the values of a dictionary of named constants, and renders the
    relation found in terms of their names, like "2⋅ln(2) + 1⋅ln(3) - 1⋅ln(12) = 0".
    with verbose, the numeric check is included too, see PSLQRelation.explain.
    returns an empty string if no relation was found.
    '''
    relation = find_named_relation(dictionary, gamma, logger, **kwargs)
    if not relation:
        return ''
    return relation.explain() if verbose else str(relation)
