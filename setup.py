from setuptools import setup, find_packages
import re

# Read version from carecalc/__init__.py
with open('carecalc/__init__.py') as f:
    version = re.search(r'^__version__ = ["\']([^"\']+)["\']', f.read(), re.MULTILINE).group(1)

setup(
    name='carecalc',
    version=version,
    packages=find_packages(exclude=['tests', 'tests.*']),
    package_data={
        'carecalc': ['payroll_rules/*.yaml'],
    },
    install_requires=[
        'PyYAML>=6.0',
        'click>=8.0',
        'pydantic>=2.0.0',
        'rich>=13.0',
    ],
    extras_require={
        'mcp': [
            'mcp[cli]>=1.0.0,<2',
        ],
        'test': [
            'pytest>=7.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'care-calc=carecalc.cli.__main__:main',
            'care-calc-mcp=carecalc.mcp.server:run_server',
        ],
    },
    author='Care Home Platform Team',
    description='Billing schedule, resident funding and UK payroll calculators for care homes.',
    python_requires='>=3.10',
)
