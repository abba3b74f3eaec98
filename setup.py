import os

from setuptools import setup, find_packages

version_file = os.path.join(
    os.path.dirname(__file__), "jpegls_image_tester", "version.py"
)
with open(version_file, "r") as f:
    exec(f.read())

readme_file = os.path.join(os.path.dirname(__file__), "README.md")
with open(readme_file, "r") as f:
    long_description = f.read()

setup(
    name="jpegls_image_tester",
    version=__version__,  # noqa: F821 -- loaded by 'exec' above
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    description=(
        "Round-trip conformance testing of a JPEG-LS codec against a "
        "directory of reference PGM/PPM pictures."
    ),
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="MIT",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX :: Linux",
        "Operating System :: Microsoft :: Windows",
        "Operating System :: MacOS",
        "Programming Language :: Python :: 3",
        "Topic :: Multimedia :: Graphics :: Graphics Conversion",
        "Topic :: Software Development :: Testing",
    ],
    keywords="jpeg-ls charls conformance lossless",
    python_requires=">=3.8",
    install_requires=[
        "numpy",
        # CharLS bindings, imported as 'jpeg_ls'
        "pyjpegls>=1.2",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "jpegls-image-tester=jpegls_image_tester.scripts.jpegls_image_tester:main",
        ],
    },
)
