"""taskman - A personal task tracker for the command line.

Tasks are kept in a local JSON file (tasks.json by default) with a backup
of the previous version written alongside it on every change.

Installation:
    pip install -e .

Usage:
    taskman -c add -d "Write report" -p high
    taskman -c list --sort-by priority
"""

__version__ = "0.1.0"
