from setuptools import setup, find_packages

setup(
    name="lottery_walkforward",
    version="0.1.0",
    description="Walk-forward validation and ensemble optimization for lottery prediction methods",
    author="Lottery Prediction Team",
    author_email="info@lotteryprediction.com",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        # Core packages
        "numpy>=1.21.0",
        "pandas>=1.3.0",
        "scipy>=1.7.0",
        "scikit-learn>=1.0.0",

        # Optimization
        "optuna>=3.0.0",

        # Utility packages
        "tqdm>=4.62.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
        "dev": [
            "pytest>=7.0.0",
            "black>=22.0.0",
            "flake8>=5.0.0",
        ],
    },
    python_requires=">=3.8",
    entry_points={
        "console_scripts": [
            "lottery-validate=scripts.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "Programming Language :: Python :: 3",
        "Topic :: Scientific/Engineering :: Mathematics",
    ],
)
