from setuptools import setup, find_packages
import re

# Read version from gwmail/__init__.py
with open('gwmail/__init__.py') as f:
    version = re.search(r'^__version__ = ["\']([^"\']+)["\']', f.read(), re.MULTILINE).group(1)

setup(
    name='gwmail',
    version=version,
    packages=find_packages(exclude=['tests', 'tests.*']),
    python_requires='>=3.8',
    install_requires=[
        'google-api-python-client',
        'google-auth',
        'python-dotenv',
        'click>=8.0',
        'PyYAML',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'gwmail=gwmail.cli.__main__:main',
        ],
    },
    author='CLI Developer',
    description='Gmail forwarding with attachments and bulk label changes, as an SDK and CLI.',
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',
)
