"""Infrastructure helpers: logging setup, config summaries and bounded retries."""
