"""npm-workspacer: sync a local npm monorepo with remote repositories."""

__version__ = "0.1.0"
