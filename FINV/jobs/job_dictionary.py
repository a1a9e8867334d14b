'''
Searches a named constant dictionary for integer relations, subset by subset,
with find_named_relation.

Configured as such:
'dictionary':
    Name of a dictionary in FINV.lib.dictionaries.DICTIONARIES, e.g. 'tiny' or 'small'.
'subset_size':
    How many constants to test together. Subsets containing constants already
    known to be related are skipped, since PSLQ would just find the same relation again.
'dps':
    Decimal digits to compute the constants and run PSLQ with.
Anything else is passed on to PSLQ, see pslq_utils.pslq for the options.
'''
from itertools import combinations
from logging import getLogger
from typing import List
import mpmath as mp
from FINV.lib.dictionaries import DICTIONARIES
from FINV.lib.relation import PSLQRelation, find_named_relation

LOGGER_NAME = 'job_logger'

def combination_is_old(names, relations: List[PSLQRelation]) -> PSLQRelation or None:
    return ([r for r in relations if {name for _, _, name in r.terms} <= set(names)] + [None])[0]

def execute_job(dictionary='tiny', subset_size=2, dps=50, **pslq_args) -> List[str]:
    if dictionary not in DICTIONARIES:
        raise ValueError(f'Unknown dictionary {dictionary}')
    relations = []
    with mp.workdps(dps):
        consts = DICTIONARIES[dictionary]()
        getLogger(LOGGER_NAME).info(f'QUERY BEGIN - {len(consts)} constants, {subset_size} at a time, {dps} digits')
        for subset in combinations(consts, subset_size):
            if combination_is_old(subset, relations):
                continue
            relation = find_named_relation({name: consts[name] for name in subset}, dps=dps, **pslq_args)
            if relation:
                getLogger(LOGGER_NAME).info(f'FOUND: {relation} (precision {relation.precision})')
                relations.append(relation)
    getLogger(LOGGER_NAME).info(f'QUERY END - {len(relations)} relations found')
    return [str(r) for r in relations]
