'''
Looks for an integer relation between a handful of constants given as mpmath expressions.

Configured as such:
'constants':
    A list of strings, each evaluated with every name mpmath exports in scope,
    for instance 'pi/4', 'acot(5)', 'log(2)'. They need not be sorted.
'dps':
    Decimal digits to evaluate the constants and run PSLQ with.
Anything else is passed on to PSLQ, see pslq_utils.pslq for the options.
'''
from logging import getLogger
from typing import List
import mpmath as mp
from FINV.lib.relation import describe_relation

LOGGER_NAME = 'job_logger'

def evaluate(constants: List[str]):
    namespace = dict((name, getattr(mp, name)) for name in dir(mp) if not name.startswith('_'))
    return {c: mp.mpf(eval(c, namespace)) for c in constants}

def execute_job(constants, dps=50, **pslq_args) -> str:
    with mp.workdps(dps):
        dictionary = evaluate(constants)
        getLogger(LOGGER_NAME).info(f'searching for a relation between {", ".join(constants)} at {dps} digits')
        res = describe_relation(dictionary, dps=dps, **pslq_args)
    if res:
        getLogger(LOGGER_NAME).info(f'FOUND: {res}')
    else:
        getLogger(LOGGER_NAME).info('no relation found')
    return res
