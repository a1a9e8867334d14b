configuration = {
    'jobs_to_run': [
        ('identify', {
            'args': { 'constants': ['acot(239)', 'acot(5)', 'pi/4'], 'dps': 50 },
            'iterations': 1
        }),
        ('dictionary', {
            'args': { 'dictionary': 'tiny', 'subset_size': 3, 'dps': 50, 'max_norm_bound': 10**6 },
            'iterations': 1
        })
    ]
}
