"""pmvault - boards, stories, projects and epics in a folder of Markdown files."""

__version__ = "0.1.0"
