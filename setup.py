from setuptools import setup

setup(
    name='hashnote',
    version='0.1.0',
    description='Annotation comment scanner and attachment resolver for scripting languages',
    author='hashnote contributors',
    package_dir={'hashnote': 'src/hashnote'},
    packages=['hashnote', 'hashnote.cli'],
    include_package_data=True,
    python_requires='>=3.8',
    install_requires=[
        'click>=7.0',
        'rich>=9.0'
    ],
    extras_require={
        'test': ['pytest>=7.0'],
    },
    entry_points={
        'console_scripts': [
            'hashnote = hashnote.cli.main:cli'
        ]
    },
    classifiers=[
        'Programming Language :: Python :: 3',
    ],
)
