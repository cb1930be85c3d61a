from setuptools import setup, find_packages

setup(
    name='token-manager',
    version='0.1.0',
    description='Build, sign and submit SPL token and Metaplex metadata transactions',
    author='Token Manager Team',
    packages=find_packages(exclude=['tests', 'tests.*', 'examples']),
    install_requires=[
        'base58>=2.1.1',
        'pynacl>=1.5.0',
        'httpx>=0.25.0',
        'PyYAML>=6.0',
        'borsh-construct>=0.1.0',
        'construct>=2.10',
        'solders>=0.18.0',
    ],
    extras_require={
        'test': [
            'pytest>=7.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'token-manager=token_manager.cli:main',
        ],
    },
    python_requires='>=3.8',
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
    ],
)
