from setuptools import setup

setup(
    name="FINV",
    version="0.1.0",
    python_requires=">=3.8.10",
    description="Find Integer Null Vectors: PSLQ integer relation detection between high precision constants",
    packages=['FINV', 'FINV.lib', 'FINV.jobs'],
    install_requires=[
        'gmpy2>=2.1.5',
        'mpmath>=1.2.1',
        'sympy>=1.5.1'
    ],
    extras_require={
        'test': ['pytest>=7.0']
    }
)
