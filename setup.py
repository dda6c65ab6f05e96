import setuptools

with open('README.md') as f:
    readme = f.read()

with open('VERSION') as f:
    version = f.read().strip()


setuptools.setup(
  name='treequery',
  version=version,
  description='Structural queries over dependency-parsed token tables',
  long_description=readme,
  long_description_content_type='text/markdown',
  install_requires=[
      "plac>=1.3.0",
      "spacy>=3.2.0",
      "ordered-set",
      "frozendict>=2.0"
  ],
  extras_require={
      "test": ["pytest"],
  },
  package_dir={"": "src"},
  packages=["depcore", "treequery", "treequery.test"],
  include_package_data=True,
  python_requires='>=3.10',
  platforms='any'
)
