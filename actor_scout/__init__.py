"""Actor Scout: find, score and test-run Apify Actors for a free-text request."""

__version__ = "0.1.0"
