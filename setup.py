import subprocess

from setuptools import setup, find_packages

with open("README.md", "r") as f:
    long_description = f.read()

# Get version from "git describe" (requires releases to be tagged vX.Y.Z and
# initial commit to be tagged v0.0.0, both with annotated tags). Outside a git
# checkout, fall back to the last release.
try:
    git_version = subprocess.check_output(
        ['git', 'describe', '--abbrev', '--dirty'],
        text=True,
        stderr=subprocess.DEVNULL,
    )
except (OSError, subprocess.CalledProcessError):
    git_version = "v0.1.0"
version_parts = git_version.strip().lstrip('v').split('-')
version = version_parts[0]
if len(version_parts) > 1:
    version += f".dev{version_parts[1]}+{version_parts[2]}"
if len(version_parts) > 3:
    version += ".dirty"

setup(
    name="cloudflareddns",
    version=version,
    description="Keep Cloudflare DNS records in sync with your public IP",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="GPL-3.0-or-later",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: GNU General Public License v3 or later "
        "(GPLv3+)",
        "Topic :: Internet :: Name Service (DNS)",
    ],

    packages=find_packages(include=["cloudflareddns", "cloudflareddns.*"]),
    install_requires=[
        "requests",
        "urllib3",
        "dnspython",
        "importlib_metadata; python_version<'3.10'",
    ],
    python_requires=">=3.8",
    extras_require={
        "test": [
            "flake8",
            "pytest",
            "pytest-cov",
            "pytest-mock",
        ]
    },

    entry_points={
        "console_scripts": [
            "cloudflareddns=cloudflareddns.main:main",
        ],
    },
)
