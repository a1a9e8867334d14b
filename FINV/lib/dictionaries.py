'''
Named constants to feed describe_relation, computed at the current mp.dps.
No two of them may be equal, and note that rationally dependent entries
(like phi and sqrt(5)) make every search return that dependency first.
'''
from typing import Dict
import mpmath as mp

def tiny_pslq_dictionary() -> Dict[str, mp.mpf]:
    return {
        'π': +mp.pi,
        'e': +mp.e,
        '√2': mp.sqrt(2),
        'ln(2)': mp.ln(2)
    }

def small_pslq_dictionary() -> Dict[str, mp.mpf]:
    d = {
        '1/γ': 1 / mp.euler,
        '√π': mp.sqrt(mp.pi),
        'π': +mp.pi,
        'ln(π)': mp.ln(mp.pi),
        'π²': mp.pi**2,
        'π³': mp.pi**3,
        'e': +mp.e,
        '√2': mp.sqrt(2),
        '√3': mp.sqrt(3),
        '√5': mp.sqrt(5),
        '√7': mp.sqrt(7),
        '√11': mp.sqrt(11),
        'γ': +mp.euler,
        'ln(φ)': mp.ln(mp.phi), # phi itself is dependent on √5, its logarithm is not
        'G': +mp.catalan,
        'A': +mp.glaisher,
        'K₀': +mp.khinchin,
        'ζ(3)': mp.zeta(3)
    }
    # multiplicative relations need the logarithms of small primes
    for p in [2, 3, 5, 7, 11, 13, 17, 19]:
        d[f'ln({p})'] = mp.ln(p)
    return d

DICTIONARIES = {
    'tiny': tiny_pslq_dictionary,
    'small': small_pslq_dictionary
}
