"""
repodeck - a personal dashboard for pull requests across local repositories.

A CLI tool that:
1. Keeps a registry of local working copies (repodeck.yml)
2. Collects your open PRs from every registered repository via gh
3. Classifies each PR's check rollup into a single build status
4. Opens repositories in the editor matching their kind

Usage:
    repodeck init          # Write a sample repodeck.yml
    repodeck repos         # List registered repositories
    repodeck prs           # Your open PRs, newest first
    repodeck auth          # Check gh authentication
    repodeck open NAME     # Open a repository in its editor
    repodeck utils list    # Helper scripts
"""

__version__ = "0.1.0"
__author__ = "repodeck"
