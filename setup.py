#!/usr/bin/env python
from setuptools import setup, find_packages

with open("README.md", "r") as fh:
    long_description = fh.read()

setup(
    name='django-ldapclient',
    version='1.0.0',
    description='A thread-safe LDAP client with simple, GSSAPI and DIGEST-MD5 binds for Django projects',
    long_description=long_description,
    long_description_content_type="text/markdown",
    keywords=['django', 'ldap', 'active directory'],
    author="Caltech IMSS ADS",
    author_email="imss-ads-staff@caltech.edu",
    url='https://github.com/caltechads/django-ldapclient',
    packages=find_packages(exclude=['bin']),
    include_package_data=True,
    package_data={'ldapclient.tests': ['data.json']},
    install_requires=[
        'django',
        'dnspython',
        'python-ldap',
    ],
    extras_require={
        'test': [
            'pytest',
            'python-ldap-faker',
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3"
    ],
)
