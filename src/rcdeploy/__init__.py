"""rcdeploy: deploy an instruction file into project directories."""

__version__ = "0.1.0"
