from FINV.lib.pslq_utils import find_relation, pslq, Outcome, PSLQResult, InternalInvariantViolation
from FINV.lib.relation import describe_relation, find_named_relation, PSLQRelation
