import os

import setuptools

# Make sure that README.md decodes in environments that use the C locale
# (which implies ASCII), by explicitly giving the encoding.
with open(os.path.join(os.path.dirname(__file__), "README.md"), encoding="utf-8") as f:
    long_description = f.read()


setuptools.setup(
    name="wdg",
    # MAJOR.MINOR.PATCH, per http://semver.org
    version="0.1.0",
    description="Object registry, focus chain and event loop for terminal widgets",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="wdg contributors",
    keywords="terminal, tui, widgets, event loop",
    license="ISC",
    py_modules=(
        "wdg",
        "wdgterm",
        "wdgwindow",
        "wdgdemo",
    ),
    entry_points={
        "console_scripts": ("wdgdemo = wdgdemo:main",)
    },
    extras_require={
        "test": ["pytest"],
    },
    python_requires=">=3.6",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Environment :: Console",
        "Topic :: Software Development :: User Interfaces",
        "License :: OSI Approved :: ISC License (ISCL)",
        "Operating System :: POSIX",
        "Operating System :: Microsoft :: Windows",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: Implementation :: CPython",
        "Programming Language :: Python :: Implementation :: PyPy",
    ],
)
