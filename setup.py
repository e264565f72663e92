import os

from setuptools import find_packages, setup


version = '0.1.0'

here = os.path.dirname(os.path.abspath(__file__))

def read(name):
    with open(os.path.join(here, name)) as f:
        return f.read()


setup(
    name='restr',
    version=version,
    description='REST resources made right',
    long_description=read('README') + '\n\n' + read('CHANGES'),
    license='BSD',
    packages=find_packages(exclude=['ez_setup', 'examples', 'tests']),
    install_requires=[
        'WebOb >= 1.7',
        'colander >= 1.7',
    ],
    extras_require={
        'test': ['pytest'],
    },
    include_package_data=True,
    test_suite='restr.tests',
    zip_safe=False,
    python_requires='>=3.7',
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Environment :: Web Environment',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: BSD License',
        'Operating System :: OS Independent',
        'Programming Language :: Python :: 3',
        'Topic :: Internet :: WWW/HTTP :: WSGI',
        'Topic :: Software Development :: Libraries',
    ],
    keywords='rest resources routing schema webob colander')
