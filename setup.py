from setuptools import setup, find_packages

setup(
    name='occmap',
    version='0.1.0',
    description='Tools for mapping species occurrences against protected areas and modelled ranges',
    author='Matthew Whittle',
    author_email='matthewjwhittle@gmail.com',
    url='https://github.com/matthewjwhittle/sheffield-bats',
    packages=find_packages(include=['occmap', 'occmap.*']),
    install_requires=[
        'numpy',
        'pandas',
        'geopandas',
        'shapely',
        'pyproj',
        'xarray',
        'rasterio',
        'rioxarray',
        'rio-cogeo',
        'matplotlib',
        'folium',
        'pydeck',
        'pyarrow',
        'pyyaml',
        'pyhere',
        'tqdm',
        'typer',
        'typing_extensions',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'occmap=occmap.cli:app',
        ],
    },
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
    ],
)
