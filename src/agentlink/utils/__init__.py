"""Cross-cutting helpers: tracing and bounded waits."""
