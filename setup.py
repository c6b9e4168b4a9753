from setuptools import find_packages, setup


if __name__ == '__main__':
    setup(
        name='PolyMPC',
        version=1.0,
        description='Receding-horizon MPC tracking a polynomial reference path with a kinematic bicycle model, solved with CasADi/IPOPT.',
        license='Apache License 2.0',
        packages=find_packages(include=['planner*', 'common_utils*', 'simulation*']),
        python_requires='>=3.8',
        install_requires=[
            'casadi',
            'numpy',
            'hydra-core',
            'omegaconf',
            'matplotlib',
        ],
        extras_require={
            'test': ['pytest'],
        },
    )
