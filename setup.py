from setuptools import setup, find_packages

with open('requirements.txt') as fr:
    requirements = [line.strip() for line in fr if line.strip() and not line.startswith('#')]

setup(
    name='w3net',
    version='0.1.0',
    packages=find_packages('src'),
    package_dir={'': 'src'},
    python_requires='>=3.9',
    install_requires=requirements,
    extras_require={
        'test': [
            'pytest>=7.4',
            'pytest-asyncio>=0.23',
        ],
    },
)
