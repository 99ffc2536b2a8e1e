import azure_lb_sample
from setuptools import setup, find_packages


with open("requirements.txt") as f:
    requirements = f.read().splitlines()

with open("requirements-test.txt") as f:
    test_requirements = f.read().splitlines()

with open("README.md") as f:
    readme = f.read()


setup(
    name=azure_lb_sample.__title__,
    version=azure_lb_sample.__version__,
    description=azure_lb_sample.__description__,
    license=azure_lb_sample.__license__,
    packages=find_packages(exclude=["test", "test.*"]),
    long_description=readme,
    long_description_content_type="text/markdown",
    entry_points={
        "console_scripts": [
            "azure-lb-sample = azure_lb_sample.__main__:main",
        ]
    },
    include_package_data=True,
    zip_safe=False,
    python_requires=">=3.9",
    install_requires=requirements,
    tests_require=test_requirements,
    extras_require={"test": test_requirements},
    classifiers=[
        # Current project status
        "Development Status :: 4 - Beta",
        # Audience
        "Intended Audience :: System Administrators",
        "Intended Audience :: Developers",
        # License information
        "License :: OSI Approved :: Apache Software License",
        # Supported python versions
        "Programming Language :: Python :: 3.9",
        # Supported OS's
        "Operating System :: POSIX :: Linux",
        "Operating System :: Unix",
        # Extra metadata
        "Environment :: Console",
        "Natural Language :: English",
        "Topic :: System :: Networking",
        "Topic :: Utilities",
    ],
    keywords="azure load balancer network sample",
)
