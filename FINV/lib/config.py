# defaults for every PSLQ call, overridden by whatever kwargs the caller passes
pslq_config = {
    'max_norm_bound': 10e10, # give up once no relation of smaller norm can exist
    'max_iterations': 10**5, # hard cap, the loop must end even if precision runs out
    'timeout_sec': 0, # 0 means no wall clock budget
    'timeout_check_freq': 1000,
    'dps': None # None means the caller's current mp.dps
}
