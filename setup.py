from setuptools import setup

setup(
    name='q8dw-verification',
    version='0.1.0',
    description='Randomized verification of quantized depthwise convolution micro-kernels',
    packages=['q8dw_verification'],
    python_requires='>=3.8',
    install_requires=[
        'numpy',
        'torch',
        'tqdm',
    ],
    extras_require={
        'test': ['pytest'],
    },
)
