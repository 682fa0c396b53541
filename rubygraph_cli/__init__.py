"""rubygraph-cli: static class and call graph extraction for Ruby code."""

__version__ = "0.1.0"
