from setuptools import setup

# read the contents of the README file so that PyPI can use it as the long description
from pathlib import Path
this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text()

setup(name = 'dynlyap',
      packages=['dynlyap', 'dynlyap.utils'],
      version='0.1',
      install_requires = ["numpy", "scipy", "pandas", "tqdm"],
      extras_require = {
        'full': ['numba'],
        'test': ['pytest'],
      },
      package_dir={'dynlyap': 'dynlyap'},
      package_data={'dynlyap': ['data/*.json']},
      long_description=long_description,
      long_description_content_type='text/markdown'
     )
