from setuptools import setup, find_packages

setup(name = 'pydircon',
    version = '1.0',
    packages = find_packages(),
    package_data = {'pydircon': ['systems/*/urdf/*.urdf', 'configuration/examples/*.json']},
    description='hybrid direct collocation with kinematic constraints in python',
    install_requires = ['drake', 'numpy', 'matplotlib', 'dacite'],
    extras_require = {'test': ['pytest']},
    python_requires = '>=3.8',
)
