"""Recording engine: session lifecycle, processors, feed, averaging."""
