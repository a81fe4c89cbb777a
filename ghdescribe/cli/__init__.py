"""gh-git-describe CLI"""
