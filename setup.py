import io
from setuptools import setup

CLASSIFIERS = """\
Development Status :: 3 - Alpha
Intended Audience :: Science/Research
Intended Audience :: Developers
License :: OSI Approved
Programming Language :: Python
Programming Language :: Python :: 3
Topic :: Scientific/Engineering :: Mathematics
Operating System :: POSIX
Operating System :: Unix

"""

setup(
    name="fwpn",
    description="Newton Frank-Wolfe and proximal gradient solvers for "
                "elastic-net logistic regression",
    long_description=io.open("README.rst", encoding="utf-8").read(),
    version="0.1.0",
    packages=["fwpn"],
    python_requires=">=3.8",
    install_requires=["numpy", "scipy", "scikit-learn", "tqdm", "matplotlib"],
    extras_require={"test": ["pytest"]},
    classifiers=[_f for _f in CLASSIFIERS.split("\n") if _f],
    license="New BSD License",
)
