"""Runtime application: detection pipeline, error events and command-line tools."""
