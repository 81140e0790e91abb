from setuptools import setup, find_packages

setup(
    name="esxi2pve",
    version="1.0.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[l.strip() for l in open("requirements.txt", encoding="utf-8") if l.strip() and not l.startswith("#")],
    extras_require={"test": ["pytest"]},
    entry_points={"console_scripts": ["esxi2pve=esxi2pve.__main__:main"]},
)
