"""Project Deployer - builds linked repositories and ships them to hosting providers."""

__version__ = "0.1.0"
