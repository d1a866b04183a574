import setuptools

with open('README.md') as f:
    data = f.read()

setuptools.setup(
    name='ckb-script-deployer',
    version='0.1.0',
    license='MIT',
    description='One click deploy ckb script',
    packages=['ckbdeploy'],
    long_description=data,
    long_description_content_type='text/markdown',
    python_requires='>=3.11',
    install_requires=[
        'pyckb==1.2.0',
        'pyyaml',
        'requests',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'ckb-script-deployer=ckbdeploy.cli:main',
        ],
    },
)
