"""gh-git-describe: run git queries against cached bare clones of remote repositories."""

__version__ = "0.1.0"
