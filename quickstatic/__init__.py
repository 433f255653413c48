"""quickstatic static site generator.

This package turns a tree of Markdown and Jinja template files into a tree of
rendered HTML. Markdown content may carry YAML frontmatter, every document is
rendered as a template first, and the result is wrapped in a layout chosen from
the project's configuration.

The main entry point is the CLI module, which provides the ``build`` and
``serve`` commands.
"""

__all__ = ["__version__"]
__version__ = "1.0.0"
