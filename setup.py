from setuptools import setup, find_packages
import os


def get_version() -> str:
    init_path = os.path.join(os.path.dirname(__file__), "src", "fermtrack", "__init__.py")
    with open(init_path, "r", encoding="utf-8") as f:
        for line in f:
            if line.startswith("__version__"):
                return line.split("=")[1].strip().strip('"').strip("'")
    return "0.0.0"


def read_requirements(filename: str = "requirements.txt") -> list[str]:
    req_path = os.path.join(os.path.dirname(__file__), filename)
    if not os.path.exists(req_path):
        return []

    reqs: list[str] = []
    with open(req_path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            # pip options such as `-r other.txt` are not valid install_requires
            if line.startswith("-"):
                continue
            reqs.append(line)
    return reqs


setup(
    name="fermtrack",
    version=get_version(),
    package_dir={"": "src"},
    packages=find_packages("src"),
    install_requires=read_requirements(),
    extras_require={
        "test": ["pytest"],
    },
    python_requires=">=3.9",
    description="Fermentation trajectory estimation (Monod + logistic fits) from sparse gravity readings",
    entry_points={
        "console_scripts": ["fermtrack=fermtrack.cli:main"],
    },
)
