import os
from setuptools import find_packages, setup


PKG_NAME = 'lsgac'

VERSION_MAJOR = 0
VERSION_MINOR = 1
VERSION_MICRO = 0
VERSION = f"{VERSION_MAJOR}.{VERSION_MINOR}.{VERSION_MICRO}"


def write_version():
    with open(os.path.join(PKG_NAME, '_version.py'), 'w') as f:
        f.write(f'version = "{VERSION}"\n')


if __name__ == '__main__':
    write_version()

    setup(
        classifiers=[
            'Development Status :: 3 - Alpha',
            'Intended Audience :: Science/Research',
            'Intended Audience :: Developers',
            'License :: OSI Approved :: MIT License',
            'Programming Language :: Python',
            'Programming Language :: Python :: 3',
            'Topic :: Scientific/Engineering',
            'Topic :: Scientific/Engineering :: Image Recognition',
            'Topic :: Scientific/Engineering :: Mathematics',
            'Operating System :: Microsoft :: Windows',
            'Operating System :: POSIX',
            'Operating System :: Unix',
            'Operating System :: MacOS',
        ],
        description=('Geodesic active contour image segmentation with fast '
                     'marching and sparse field level sets'),
        extras_require={
            'test': ['pytest'],
        },
        install_requires=[
            'numpy',
            'scikit_fmm',
            'scikit_image',
            'scipy',
        ],
        license='MIT',
        name=PKG_NAME,
        packages=find_packages(exclude=['examples', 'examples.*']),
        python_requires='>=3.8',
        version=VERSION,
    )
