import re

from setuptools import setup

with open('src/charmbundle/version.py', 'r') as fd:
    __version__ = re.search(r'^__version__\s*=\s*[\'"]([^\'"]*)[\'"]', fd.read(), re.MULTILINE).group(1)


install_requires = [
    "pydantic>=2.0",
    "PyYAML>=5.3",
    "voluptuous>=0.11.7",
]

testing_extras = [
    "black",
    "coverage",
    "isort",
    "mypy",
    "pylama",
    "pytest",
    "types-PyYAML",
    "wheel",
]

setup(
    name="charmbundle",
    version=__version__,
    description="Deployment bundle verification tools",
    classifiers=["Programming Language :: Python :: 3",],
    keywords="",
    packages=[
        "charmbundle",
        "charmbundle.bundle",
        "charmbundle.common",
        "charmbundle.tools",
    ],
    package_dir={"": "src"},
    include_package_data=True,
    zip_safe=False,
    python_requires=">=3.11",
    install_requires=install_requires,
    extras_require={"testing": testing_extras,},
    entry_points={
        "console_scripts": [
            "charmbundle-verify = charmbundle.tools.verify:main",
        ]
    },
)
