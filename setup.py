from setuptools import setup
from intrygen import __version__

setup(
    name='intrygen',
    version=__version__,
    description='Generates staged bindings for the Intel intrinsics database.',
    python_requires='>=3.10',
    packages=['intrygen'],
    entry_points={'console_scripts': ['intrygen=intrygen.main:main']},
    install_requires=['openpyxl'],
    extras_require={'test': ['pytest']},
)
