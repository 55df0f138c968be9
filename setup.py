from setuptools import setup


setup(
    name="sheet-linker",
    version="0.1.0",
    description="Link document IDs in a spreadsheet to the files in a document folder and report discrepancies",
    packages=["sheet_linker"],
    install_requires=[
        "openpyxl",
        "PyYAML",
        "pandas",
        "streamlit",
    ],
    entry_points={
        "console_scripts": [
            "sheet-linker=sheet_linker.cli:main",
        ]
    },
)
