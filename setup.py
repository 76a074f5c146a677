from setuptools import setup, find_packages

setup(
    name='vclusterctl',
    version='0.1.0',
    packages=find_packages(include=['vclusterctl', 'vclusterctl.*']),
    include_package_data=True,
    install_requires=[
        'typer[all]',
        'fastapi',
        'uvicorn',
        'kubernetes',
        'python-dotenv',
        'pyyaml',
        'jsonschema',
        'pydantic',
    ],
    extras_require={
        'test': [
            'pytest',
            'httpx',
        ],
    },
    entry_points={
        'console_scripts': [
            'vclusterctl=vclusterctl.cli:run'
        ]
    },
    description='Declarative lifecycle manager for vcluster virtual Kubernetes clusters',
    classifiers=[
        'Programming Language :: Python :: 3',
        'Operating System :: OS Independent',
    ],
    python_requires='>=3.8',
)
