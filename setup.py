from setuptools import setup, find_packages

setup(
    name='patchfetch',
    version='0.1.0',
    package_dir={'': 'src'},
    packages=find_packages(where='src'),
    python_requires='>=3.10',
    install_requires=[
        'aiohttp',
        'aiofiles',
        'platformdirs',
        'PyYAML',
        'rich',
    ],
    extras_require={
        'test': [
            'pytest<9',
            'pytest-asyncio',
            'pytest-mock',
        ],
    },
)
