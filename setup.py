from setuptools import setup, find_packages

setup(
    name='rodent-sdm',
    version='0.1.0',
    description='Bioclimatic species distribution model for a rodent species',
    packages=find_packages(include=['rodent_sdm', 'rodent_sdm.*']),
    package_data={'rodent_sdm': ['config/*.yaml']},
    python_requires='>=3.11',
    install_requires=[
        'numpy',
        'pandas',
        'geopandas>=0.14',
        'shapely',
        'xarray',
        'rioxarray',
        'rasterio',
        'scikit-learn',
        'scipy',
        'statsmodels>=0.14',
        'matplotlib',
        'pyyaml',
        'typer',
        'typing_extensions',
        'pyarrow',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'rodent-sdm=rodent_sdm.cli:app',
        ],
    },
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Science/Research',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
    ],
)
