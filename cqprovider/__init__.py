"""Building blocks for data-fetching providers: schemas, resolvers, dialects, reattach files and a test logger."""

__version__ = "0.1.0"