#!/usr/bin/env python
# vim: set sw=4 et:

from setuptools import setup, find_packages

from cdnrewrite import __version__


def get_long_description():
    with open('README.rst', 'r') as fh:
        long_description = fh.read()
    return long_description


def load_requirements(filename):
    with open(filename, 'rt') as fh:
        requirements = fh.read().rstrip().split('\n')
    return requirements


setup(
    name='cdnrewrite',
    version=__version__,
    description='Rewrite static asset urls in page and JSON api responses to a CDN hostname',
    long_description=get_long_description(),
    license='GPL',
    packages=find_packages(exclude=['tests', 'tests.*']),
    zip_safe=False,
    package_data={
        'cdnrewrite': ['*.yaml'],
    },
    install_requires=load_requirements('requirements.txt'),
    extras_require={
        'test': load_requirements('test_requirements.txt'),
    },
    python_requires='>=3.7',
    entry_points="""
        [console_scripts]
        cdn-rewrite = cdnrewrite.apps.cli:rewrite_files
        cdn-rewrite-server = cdnrewrite.apps.cli:rewrite_server
        """,
    classifiers=[
        'Development Status :: 4 - Beta',
        'Environment :: Web Environment',
        'License :: OSI Approved :: GNU General Public License v3 (GPLv3)',
        'Programming Language :: Python :: 3',
        'Topic :: Internet :: WWW/HTTP',
        'Topic :: Internet :: WWW/HTTP :: WSGI :: Middleware',
        'Topic :: Software Development :: Libraries :: Python Modules',
        'Topic :: Utilities',
    ])
